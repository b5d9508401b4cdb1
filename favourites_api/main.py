import uvicorn

from favourites_api.app import create_app

app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "favourites_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        loop="asyncio",  # Explicitly use asyncio instead of auto (which tries uvloop)
    )
