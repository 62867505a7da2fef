import signal
import threading

import click

from . import create_app


@click.group()
def main():
    """Lantern command line."""


@main.command()
@click.option('--host', default=None, help='Interface to bind, defaults to HOST.')
@click.option('--port', default=None, type=int, help='Port to bind, defaults to PORT.')
def serve(host, port):
    """Starts the server and blocks until interrupted."""
    overrides = {}
    if host:
        overrides['HOST'] = host
    if port is not None:
        overrides['PORT'] = port

    application = create_app(overrides)
    application.start()
    click.echo(f"Lantern listening on port {application.server.port}"
               f"{' (TLS)' if application.server.tls_enabled else ''}")

    stopped = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stopped.set())
    try:
        stopped.wait()
    except KeyboardInterrupt:
        pass
    finally:
        application.stop()


@main.command()
def routes():
    """Lists the registered routes."""
    application = create_app()
    server = application.server
    server.assemble()
    for route in sorted(server.registry.routes, key=lambda r: r.name):
        click.echo(f"{route.name:<24} {','.join(route.methods):<10} {route.path}")


@main.command('clear-logs')
@click.confirmation_option(prompt='Delete every log file of this application context?')
def clear_logs():
    """Deletes var/<app_context> below the root path."""
    application = create_app()
    application.logger.remove_all_log_files()
    click.echo(f"Removed {application.logger.base_dir}")


if __name__ == '__main__':
    main()
