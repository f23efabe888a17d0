"""Entry point shim.

The ASGI app lives in `app.main:app`; this module lets `uvicorn main:app`
and `python main.py` work from the project root.
"""

import os

from app.main import app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
