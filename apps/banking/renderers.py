from rest_framework.renderers import BaseRenderer, JSONRenderer


class CSVRenderer(BaseRenderer):
    """
    Lets ``?format=csv`` through content negotiation.

    Views answer CSV requests with pre-rendered text; anything else (error
    bodies) is rendered as JSON.
    """

    media_type = 'text/csv'
    format = 'csv'
    charset = 'utf-8'

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if isinstance(data, str):
            return data.encode(self.charset)
        return JSONRenderer().render(data, renderer_context=renderer_context)
