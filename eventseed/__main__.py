from eventseed.cli import app

app()
