from dotenv import load_dotenv

load_dotenv()

from judgeportal import create_app
from judgeportal.helpers.schema import create_schema

api = create_app()

# Run DB bootstrap once at startup
with api.app_context():
    create_schema()

if __name__ == "__main__":
    api.run(debug=api.config.get("APP_ENV") == "development", port=5001)
