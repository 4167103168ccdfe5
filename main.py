#!/usr/bin/env python3
"""
Main entry point for the Notion search front-end
"""

import uvicorn
from notion_search import create_app
from notion_search.config import Config

# Create FastAPI application instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=Config.RELOAD
    )
