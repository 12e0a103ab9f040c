from .presentation.cli import app

app(prog_name="ledgerscan")
