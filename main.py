import uvicorn

from src.main.config import config

if __name__ == "__main__":
    uvicorn.run(
        "src.main.web:app",
        host=config.app.HOST,
        port=config.app.PORT,
        reload=config.app.DEBUG,
    )
