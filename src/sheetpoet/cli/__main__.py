from sheetpoet.cli import app

app()
