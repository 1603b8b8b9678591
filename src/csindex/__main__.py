from csindex.cli import app

app(prog_name="csindex")
