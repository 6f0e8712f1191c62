from wirebazaar import create_app

app = create_app()
