"""
Public routes: landing, health check, self-service RSVP and the guest's QR code.
"""

from datetime import datetime
from flask import Blueprint, Response, abort, current_app, jsonify, request
from werkzeug.utils import secure_filename

from guestlist.errors import StoreError, ValidationError
from guestlist.services.email_service import email_service
from guestlist.services.qr_image import render_qr_png
from guestlist.services.registry import guest_registry

main_bp = Blueprint('main', __name__)


def parse_attending(value):
    """Map form/JSON values to True, False or None (no choice made)."""
    if value is None or isinstance(value, bool):
        return value
    value = str(value).strip().lower()
    if value in ('true', 'yes', '1', 'on', 'attending'):
        return True
    if value in ('false', 'no', '0', 'off', 'declined'):
        return False
    return None


def rsvp_deadline_passed(now: datetime = None) -> bool:
    # Parsed to a datetime by create_app
    deadline = current_app.config.get('RSVP_DEADLINE')
    if not deadline:
        return False
    return (now or datetime.now()) > deadline


@main_bp.route('/')
def index():
    """Landing endpoint."""
    return jsonify({
        'app': 'Guest List',
        'rsvp_open': not rsvp_deadline_passed(),
    })


@main_bp.route('/health')
def health():
    """Health check endpoint for Railway."""
    return {'status': 'healthy', 'app': 'Guest List', 'timestamp': datetime.utcnow().isoformat()}


# ============== RSVP FLOW ==============

@main_bp.route('/rsvp', methods=['POST'])
def submit_rsvp():
    """
    Record a guest's RSVP.

    Accepts JSON or form data with 'name', 'attending', and optional
    'message', 'email', 'phone'. Re-submitting under the same name updates
    the existing guest and keeps their QR code.

    Returns:
        JSON with 'success', 'guest' (including 'credential'), 'qr_url'
    """
    data = request.get_json(silent=True) or request.form

    if rsvp_deadline_passed():
        return jsonify({'success': False, 'error': 'RSVP deadline has passed'}), 400

    try:
        guest = guest_registry.upsert_by_name(
            name=data.get('name', ''),
            attending=parse_attending(data.get('attending')),
            message=data.get('message'),
            email=data.get('email'),
            phone=data.get('phone'),
        )
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except StoreError as e:
        current_app.logger.error(f"Error processing RSVP: {e}")
        return jsonify({'success': False, 'error': 'Failed to submit RSVP. Please try again.'}), 503

    # Don't fail the RSVP if email fails
    email_service.send_rsvp_notification(guest)

    if guest.is_attending:
        message = "Thank you! We're excited to celebrate with you!"
    else:
        message = "Thank you for letting us know. You'll be missed!"

    return jsonify({
        'success': True,
        'message': message,
        'guest': {
            'id': guest.id,
            'name': guest.name,
            'is_attending': guest.is_attending,
            'credential': guest.credential,
        },
        'qr_url': f"/rsvp/{guest.credential}/qr.png",
    })


@main_bp.route('/rsvp/<credential>/qr.png')
def credential_qr(credential):
    """QR code image for an issued credential, for display or download."""
    try:
        guest = guest_registry.find_by_credential(credential)
    except StoreError:
        abort(503)
    if guest is None:
        abort(404)

    filename = secure_filename(f"qr-code-{guest.name.lower()}.png") or 'qr-code.png'
    return Response(
        render_qr_png(guest.credential),
        mimetype='image/png',
        headers={'Content-Disposition': f'inline; filename={filename}'}
    )
