import uvicorn

from image_optimizer.config import settings


def main() -> None:
    uvicorn.run("image_optimizer:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
