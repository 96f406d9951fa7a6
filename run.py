"""
SnipWire webhooks entry point.
"""
import os
import sys
import traceback

config_name = os.getenv('FLASK_ENV', 'production')

try:
    from snipwire import create_app
    app = create_app(config_name)
except Exception as e:
    print(f"[SnipWire] FATAL ERROR during app creation: {e}")
    traceback.print_exc()
    sys.exit(1)

if __name__ == '__main__':
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=os.getenv('FLASK_ENV') == 'development'
    )
