"""
Run the knowledge base API with uvicorn.

    python -m knowledge_base
"""

import uvicorn

from .core.config import HOST, PORT, debug_enabled


def main():
    uvicorn.run(
        "knowledge_base.api.main:app",
        host=HOST,
        port=PORT,
        reload=debug_enabled(),
        log_level="debug" if debug_enabled() else "info",
    )


if __name__ == "__main__":
    main()
