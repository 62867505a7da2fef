class IndexHandler:
    """Home page."""

    def __init__(self, renderer):
        self.renderer = renderer

    def handle(self, request, **params):
        return self.renderer.render('index')
