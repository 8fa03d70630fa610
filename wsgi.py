from storygen import create_app

app = create_app()
