import logging

from greeting_service.serving.server import serve

logging.basicConfig(level=logging.INFO)
serve()
