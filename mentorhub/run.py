#!/usr/bin/env python3
# mentorhub/run.py
"""
Development server runner.

Creates the schema on startup unless AUTO_CREATE_SCHEMA=false.
"""
import os

import uvicorn


def main() -> None:
    os.environ.setdefault("AUTO_CREATE_SCHEMA", "true")
    uvicorn.run(
        "mentorhub.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info",
    )


if __name__ == "__main__":
    main()
