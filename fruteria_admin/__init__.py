# ==============================================================================
# FRUTERÍA ADMIN - Panel administrativo con caché offline
# ==============================================================================
# Ventas, compras, inventario, clientes, proveedores, usuarios y calendario
# de tareas operativas. Estado en memoria, respaldo local en JSON y
# sincronización best-effort con el backend remoto.
# ==============================================================================

__version__ = '1.0.0'
