from flask import Blueprint, jsonify

from judgeportal.extensions import db
from judgeportal.helpers.auth import login_required, require_role
from judgeportal.helpers.db import atomic
from judgeportal.helpers.payload import apply_updates, get_json_body
from judgeportal.helpers.serialize import sponsor_to_dict
from judgeportal.helpers.sponsor import SPONSOR_UPDATE_FIELDS, create_sponsor, get_sponsor_or_404
from judgeportal.models import Sponsor
from judgeportal.models.enums import UserRole

sponsors_bp = Blueprint("sponsors", __name__, url_prefix="/sponsors")


@sponsors_bp.route("", methods=["GET"])
@login_required
def list_sponsors():
    sponsors = Sponsor.query.order_by(Sponsor.name.asc()).all()
    return jsonify({"sponsors": [sponsor_to_dict(s) for s in sponsors]})


@sponsors_bp.route("", methods=["POST"])
@require_role(UserRole.ADMIN)
def create_sponsor_route():
    data = get_json_body()
    with atomic():
        sponsor = create_sponsor(data)
    return jsonify({"sponsor": sponsor_to_dict(sponsor)}), 201


@sponsors_bp.route("/<int:sponsor_id>", methods=["PUT"])
@require_role(UserRole.ADMIN)
def update_sponsor(sponsor_id):
    sponsor = get_sponsor_or_404(sponsor_id)
    data = get_json_body()
    with atomic():
        apply_updates(sponsor, data, SPONSOR_UPDATE_FIELDS)
    return jsonify({"sponsor": sponsor_to_dict(sponsor)})


@sponsors_bp.route("/<int:sponsor_id>", methods=["DELETE"])
@require_role(UserRole.ADMIN)
def delete_sponsor(sponsor_id):
    sponsor = get_sponsor_or_404(sponsor_id)
    # events keep existing; their sponsor_id is nulled by the FK
    with atomic():
        db.session.delete(sponsor)
    return "", 204
