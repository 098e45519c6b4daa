"""Argparse builders for the project, task and init commands, and the app context."""