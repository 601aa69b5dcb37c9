"""
Main Entry Point (Root Level)

Creates the schema if needed and serves the FinSight API.
"""

import uvicorn

from finsight.ingest.database import init_database

if __name__ == "__main__":
    init_database()
    # Use import string to enable reload and workers
    uvicorn.run(
        "finsight.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
