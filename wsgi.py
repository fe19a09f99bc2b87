"""
WSGI entry point (gunicorn wsgi:app)
"""
from pathlib import Path
from dotenv import load_dotenv

# First match wins; .env.local is for local development
ENV_FILES = ('.env.local', '.env')


def load_environment(base_path=Path(__file__).parent):
    for name in ENV_FILES:
        env_path = base_path / name
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


env_path = load_environment()

# Config reads os.environ at import time, so import after load_dotenv
from tradepost import create_app  # noqa: E402

app = create_app()

if env_path:
    app.logger.info(f"Loaded environment from: {env_path}")
else:
    app.logger.warning("No .env or .env.local file found. Using system environment variables.")

if __name__ == "__main__":
    app.run(debug=True)
