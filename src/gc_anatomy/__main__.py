from gc_anatomy.cli import app

app()
