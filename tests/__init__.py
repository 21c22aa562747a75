import os

# Must be set before studyflow.core.database builds its engine.
os.environ.setdefault("STUDYFLOW_DATABASE_URL", "sqlite://")
os.environ.setdefault("STUDYFLOW_SCHEDULER_ENABLED", "false")
os.environ.setdefault("STUDYFLOW_JWT_SECRET", "test-secret")
