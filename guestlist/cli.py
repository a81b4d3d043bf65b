"""
Venue-side commands.

    flask scan --device 0 --station door-1
    flask seed-guests guests.txt
"""

import click
from flask import current_app

from guestlist.errors import CameraError, StoreError, ValidationError
from guestlist.services.camera import OpenCVCamera, OpenCVQRDecoder
from guestlist.services.checkin import checkin_resolver
from guestlist.services.registry import guest_registry
from guestlist.services.scanner import ScanLoop


def make_checkin_handler(app, station: str, echo=click.echo):
    """Resolve payloads inside an app context; True once a guest is welcomed.

    The scan loop calls this from timer threads, which have no Flask
    context of their own.
    """
    def handle(payload: str) -> bool:
        with app.app_context():
            try:
                result = checkin_resolver.resolve(payload, scanned_by=station)
            except StoreError as e:
                echo(f"Database error, scan again: {e}")
                return False
        echo(result.message)
        return result.is_welcomed
    return handle


def seed_guests(names) -> dict:
    """Pre-register guests by name. Returns summary."""
    added = 0
    skipped = 0

    for name in names:
        name = name.strip()
        if not name:
            continue
        try:
            guest_registry.create_pending(name)
            added += 1
        except ValidationError:
            skipped += 1

    return {
        'added': added,
        'skipped': skipped,
        'total': len(guest_registry.list_guests())
    }


def register_commands(app):

    @app.cli.command('scan')
    @click.option('--device', default=0, show_default=True, help='Camera device index.')
    @click.option('--station', default='admin', show_default=True, help='Name recorded on each check-in.')
    @click.option('--result-delay', type=float, default=None,
                  help='Seconds to keep a welcome on screen before stopping.')
    @click.option('--keep-going', is_flag=True, help='Keep scanning after each welcomed guest.')
    def scan(device, station, result_delay, keep_going):
        """Scan guest QR codes with a local camera."""
        flask_app = current_app._get_current_object()
        handler = make_checkin_handler(flask_app, station)
        if result_delay is None:
            result_delay = flask_app.config.get('SCAN_RESULT_DELAY', 2.0)

        def on_payload(payload):
            welcomed = handler(payload)
            return welcomed and not keep_going

        loop = ScanLoop(
            open_camera=OpenCVCamera(device).open,
            decoder=OpenCVQRDecoder(),
            on_payload=on_payload,
            result_delay=result_delay,
        )

        try:
            loop.start()
        except CameraError as e:
            raise click.ClickException(f"{e.message} ({e.kind}). Fix the camera and run the command again.")

        click.echo(f"Scanning on camera {device} as '{station}'. Press Ctrl-C to stop.")
        try:
            while not loop.wait(timeout=0.5):
                pass
        except KeyboardInterrupt:
            click.echo("Stopping scanner")
        finally:
            loop.stop()

    @app.cli.command('seed-guests')
    @click.argument('names_file', type=click.File('r', encoding='utf-8'))
    def seed_guests_command(names_file):
        """Pre-register guests listed one name per line."""
        result = seed_guests(names_file.readlines())
        click.echo(f"Seeded guests: {result['added']} added, {result['skipped']} skipped, {result['total']} total")
