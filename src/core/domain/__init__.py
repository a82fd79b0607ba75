"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y los errores tipados.
- El dominio no conoce HTTP, CLI, ni sistema de ficheros: solo conceptos del problema.
"""
