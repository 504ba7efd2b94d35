from activity_normalizer.cli import app

app()
