import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Backing file settings
    data_dir: str = os.getenv("LIBRARY_DATA_DIR", "data")
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.json")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Bookshelf API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def books_path(self) -> str:
        return os.path.join(self.data_dir, self.books_file)


settings = Settings()
