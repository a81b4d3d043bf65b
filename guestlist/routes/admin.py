from flask import Blueprint, request, current_app, jsonify, Response
from datetime import date
import csv
import io

from guestlist.auth import admin_gate, admin_required
from guestlist.errors import StoreError, ValidationError
from guestlist.services.camera import OpenCVQRDecoder
from guestlist.services.checkin import checkin_resolver
from guestlist.services.ledger import attendance_ledger
from guestlist.services.registry import guest_registry

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

qr_decoder = OpenCVQRDecoder()


def _payload():
    return request.get_json(silent=True) or request.form


def _store_unavailable(e):
    current_app.logger.error(f"Store error: {e}")
    return jsonify({'success': False, 'error': 'Database unavailable, please try again'}), 503


@admin_bp.route('/login', methods=['POST'])
def login():
    """Admin login with the shared password."""
    password = _payload().get('password', '')
    if admin_gate.login(password):
        return jsonify({'success': True})
    return jsonify({'success': False, 'error': 'Invalid password'}), 401


@admin_bp.route('/logout', methods=['POST'])
def logout():
    """Log out admin."""
    admin_gate.logout()
    return jsonify({'success': True})


@admin_bp.route('/')
@admin_required
def dashboard():
    """Guest list headline numbers."""
    try:
        stats = guest_registry.stats()
    except StoreError as e:
        return _store_unavailable(e)
    return jsonify({'success': True, 'stats': stats})


# ============== GUEST LIST ==============

@admin_bp.route('/guests')
@admin_required
def guests():
    """All guests, newest first."""
    try:
        all_guests = guest_registry.list_guests()
    except StoreError as e:
        return _store_unavailable(e)
    return jsonify({
        'success': True,
        'guests': [g.to_dict() for g in all_guests],
    })


@admin_bp.route('/guests', methods=['POST'])
@admin_required
def add_guest():
    """Pre-register a guest; their QR code is issued right away."""
    data = _payload()
    try:
        guest = guest_registry.create_pending(
            name=data.get('name', ''),
            email=data.get('email'),
            phone=data.get('phone'),
        )
    except ValidationError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except StoreError as e:
        return _store_unavailable(e)

    return jsonify({'success': True, 'guest': guest.to_dict()}), 201


@admin_bp.route('/guests/export')
@admin_required
def export_guests():
    """Download the guest list as CSV."""
    try:
        all_guests = guest_registry.list_guests()
    except StoreError as e:
        return _store_unavailable(e)

    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)

    # Header row
    writer.writerow([
        'Name',
        'Email',
        'Phone',
        'Attending',
        'Has Responded',
        'QR Code',
        'Created At'
    ])

    for g in all_guests:
        writer.writerow([
            g.name,
            g.email or '',
            g.phone or '',
            'Yes' if g.is_attending else 'No',
            'Yes' if g.has_responded else 'No',
            g.credential,
            g.created_at.strftime('%Y-%m-%d %H:%M:%S') if g.created_at else ''
        ])

    output.seek(0)
    filename = f"guests-{date.today().isoformat()}.csv"
    return Response(
        output.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


# ============== CHECK-IN ==============

@admin_bp.route('/attendance')
@admin_required
def attendance():
    """Everyone checked in so far, latest scan first."""
    try:
        rows = attendance_ledger.list_all()
    except StoreError as e:
        return _store_unavailable(e)

    records = []
    for record, guest in rows:
        records.append({
            'id': record.id,
            'guest_id': guest.id,
            'guest_name': guest.name,
            'scanned_by': record.scanned_by,
            'scanned_at': record.scanned_at.isoformat() if record.scanned_at else None,
        })
    return jsonify({'success': True, 'attendance': records})


@admin_bp.route('/checkin', methods=['POST'])
@admin_required
def checkin():
    """
    Check in a guest from a decoded QR payload.

    Used by scanners that decode in the browser. Rejections (unknown code,
    declined guest, already checked in) are normal outcomes and come back
    with 200 and 'success': false.
    """
    data = _payload()
    try:
        result = checkin_resolver.resolve(
            data.get('credential', ''),
            scanned_by=str(data.get('station') or 'admin'),
        )
    except StoreError as e:
        return _store_unavailable(e)
    return jsonify(result.to_dict())


@admin_bp.route('/checkin/frame', methods=['POST'])
@admin_required
def checkin_frame():
    """Decode a QR code from an uploaded camera frame and check the guest in."""
    if 'frame' not in request.files:
        return jsonify({'success': False, 'status': 'no_frame', 'error': 'No frame provided'}), 400

    content = request.files['frame'].read()
    payload = qr_decoder.decode_image_bytes(content)
    if not payload:
        return jsonify({'success': False, 'status': 'no_code', 'message': 'No QR code found'})

    try:
        result = checkin_resolver.resolve(payload, scanned_by=request.form.get('station') or 'admin')
    except StoreError as e:
        return _store_unavailable(e)
    return jsonify(result.to_dict())
