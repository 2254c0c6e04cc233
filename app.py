"""
Task Tree
---------
Flask app using SQLite (SQLAlchemy) to provide:
  - a hierarchical task list (subtasks, assignee, deadline, description)
  - task cards, a calendar of deadlines and a gantt view per top-level task
  - flat markdown wiki pages
  - a single shared password (PASSWORD_HASH) guarding everything
Run:
  pip install -e .
  tasktree hash-password          # put the output into .env as PASSWORD_HASH
  python app.py                   # or: flask --app app run
Open http://127.0.0.1:3050/
"""
import sys

from tasktree import create_app
from tasktree.config import ConfigError, load_settings

settings = load_settings()

try:
    app = create_app(settings)
except ConfigError as e:
    sys.exit(f"ERROR: {e}")

if __name__ == "__main__":
    app.run(host=settings.host, port=settings.port, debug=False)
