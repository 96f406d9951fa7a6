"""
Gunicorn configuration for the SnipWire webhooks service.
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

# Snipcart waits for taxes.calculate answers, keep workers responsive
workers = int(os.getenv('GUNICORN_WORKERS', '2'))
threads = int(os.getenv('GUNICORN_THREADS', '4'))
worker_class = 'gthread'
timeout = 30
keepalive = 5

# Logging
accesslog = '-'  # stdout
errorlog = '-'   # stderr
loglevel = os.getenv('LOG_LEVEL', 'info')
capture_output = True

proc_name = 'snipwire'

wsgi_app = 'run:app'
