"""Main entry point for running the Tabsplit API"""
import dotenv

dotenv.load_dotenv()

from tabsplit.main import run  # noqa: E402


if __name__ == "__main__":
    run()
