from pastures.cli.main import run

run()
