from schemadrift.cli import app

app()
