# App module
