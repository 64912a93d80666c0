from tamweel import create_app

app = create_app()
