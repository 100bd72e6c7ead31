from wpprovision.cli import app

app(prog_name="wp-provision")
