"""
Excepciones personalizadas de la aplicacion.
"""
