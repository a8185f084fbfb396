"""WSGI entry point for the BudgetSimple engine."""

import os
import sys

from budgetsimple import create_app

app = create_app()


def _port(argv) -> int:
    """Port from ``--port N``, then the PORT environment variable, then 5000."""
    if len(argv) > 2 and argv[1] == "--port":
        return int(argv[2])
    return int(os.environ.get("PORT", 5000))


if __name__ == "__main__":
    # DEBUG follows APP_ENV via the settings applied in create_app()
    app.run(debug=app.config["DEBUG"], host="0.0.0.0", port=_port(sys.argv))
