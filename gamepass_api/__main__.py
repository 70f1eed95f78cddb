"""Run the API with uvicorn: `python -m gamepass_api`."""

from __future__ import annotations

import uvicorn

from .config import HOST, PORT


def main() -> None:
    uvicorn.run("gamepass_api.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    main()
