from judgeportal.errors import NotFound
from judgeportal.extensions import db
from judgeportal.helpers.payload import parse_choice, parse_color, parse_str
from judgeportal.models import Sponsor
from judgeportal.models.enums import SponsorTier


def get_sponsor_or_404(sponsor_id: int) -> Sponsor:
    sponsor = db.session.get(Sponsor, sponsor_id)
    if not sponsor:
        raise NotFound("Sponsor not found")
    return sponsor


def _color_or_default(default):
    return lambda v, f: parse_color(v, f) or default


SPONSOR_UPDATE_FIELDS = {
    "name": ("name", lambda v, f: parse_str(v, f, required=True, max_length=255)),
    "logoUrl": ("logo_url", lambda v, f: parse_str(v, f)),
    "websiteUrl": ("website_url", lambda v, f: parse_str(v, f)),
    "tier": ("tier", lambda v, f: parse_choice(v, f, SponsorTier, required=False)),
    "primaryColor": ("primary_color", _color_or_default("#500000")),
    "secondaryColor": ("secondary_color", _color_or_default("#FFFFFF")),
    "textColor": ("text_color", _color_or_default("#FFFFFF")),
}


def create_sponsor(data: dict) -> Sponsor:
    sponsor = Sponsor()
    for key, (column, parser) in SPONSOR_UPDATE_FIELDS.items():
        value = data.get(key)
        if value is None and key != "name":
            continue
        setattr(sponsor, column, parser(value, key))

    db.session.add(sponsor)
    db.session.flush()
    return sponsor
