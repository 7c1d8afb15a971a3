from sqlalchemy import CheckConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models.enums import SponsorTier, check_in

class Sponsor(db.Model):
    __tablename__ = "sponsors"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    logo_url = db.Column(db.Text, nullable=True)
    website_url = db.Column(db.Text, nullable=True)
    tier = db.Column(db.String(50), nullable=True)

    # Branding, "#RRGGBB"
    primary_color = db.Column(db.String(7), nullable=False, default="#500000")
    secondary_color = db.Column(db.String(7), nullable=False, default="#FFFFFF")
    text_color = db.Column(db.String(7), nullable=False, default="#FFFFFF")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    events = db.relationship("Event", back_populates="sponsor")

    __table_args__ = (
        CheckConstraint(f"tier IS NULL OR {check_in('tier', SponsorTier)}", name="ck_sponsors_tier"),
    )
