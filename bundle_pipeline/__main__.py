from bundle_pipeline.cli import app

app()
