# WSGI entrypoint: gunicorn-style servers load ``main:application``
import logging

from simlok.core.app import create_app

logger = logging.getLogger(__name__)

application = create_app()
app = application

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000)
