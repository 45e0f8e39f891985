from reelmatch.ui.cli import run

run()
