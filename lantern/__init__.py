"""
Lantern: a server-rendered web application framework on Flask.

    from lantern import create_app

    application = create_app()
    application.start()
"""

__version__ = '0.1.0'


def create_app(test_config=None, services=None):
    """
    Builds an Application from the environment, overlaid with ``test_config``.

    ``services`` replaces container entries by name (e.g. a fake mail service)
    before anything is resolved.
    """
    from .config import load_config
    from .core.application import Application

    return Application(load_config(test_config), overrides=services)
