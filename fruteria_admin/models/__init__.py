# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Los registros se guardan como diccionarios (formato de las tablas remotas);
# las dataclasses los normalizan (IDs en texto, totales recalculados, enums).
# ==============================================================================

from .entities import (
    # Enumeraciones
    UserRole,
    ProductUnit,
    SaleStatus,
    PurchaseStatus,
    TaskStatus,
    TaskFrequency,
    TaskType,

    # Entidades
    SystemUser,
    Product,
    Client,
    Supplier,
    SaleItem,
    Sale,
    PurchaseItem,
    Purchase,
    OperationalTask,

    # Estado
    AppState,
    IdentityConfig,

    # Utilidades y constantes
    normalize_id,
    same_id,
    ENTITY_TABLES,
    ENTITY_TYPES,
    INITIAL_USER,
    MASTER_USER_ID,
    VALID_CURRENCIES,
    VALID_THEMES,
)

__all__ = [
    'UserRole',
    'ProductUnit',
    'SaleStatus',
    'PurchaseStatus',
    'TaskStatus',
    'TaskFrequency',
    'TaskType',

    'SystemUser',
    'Product',
    'Client',
    'Supplier',
    'SaleItem',
    'Sale',
    'PurchaseItem',
    'Purchase',
    'OperationalTask',

    'AppState',
    'IdentityConfig',

    'normalize_id',
    'same_id',
    'ENTITY_TABLES',
    'ENTITY_TYPES',
    'INITIAL_USER',
    'MASTER_USER_ID',
    'VALID_CURRENCIES',
    'VALID_THEMES',
]
