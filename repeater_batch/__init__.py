"""
repeater-batch: persistencia por lotes de campos repetidores.

Aplana un arbol de filas/sub-campos, compara contra el almacen plano
clave/valor y escribe solo la diferencia con sentencias agrupadas.
"""

__version__ = "1.0.1"
