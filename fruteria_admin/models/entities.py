# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio de la frutería.
# Los registros viajan como diccionarios con los nombres de campo originales
# (camelCase), que son las columnas de las tablas remotas. Estas clases dan
# forma tipada a esos diccionarios y normalizan valores al guardarlos.
# ==============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from typing import Optional, List, Dict, Any
from enum import Enum


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMINISTRADOR = "Administrador"
    GERENTE = "Gerente"
    VENDEDOR = "Vendedor"


class ProductUnit(str, Enum):
    """Unidades de venta de un producto."""
    KILOS = "Kilos"
    UNIDAD = "Unidad"
    CAJA = "Caja"


class SaleStatus(str, Enum):
    """Estados posibles de una venta."""
    PENDIENTE = "Pendiente"   # Por cobrar
    CANCELADO = "Cancelado"   # Pagada
    ANULADO = "Anulado"       # Anulada (no revierte stock)


class PurchaseStatus(str, Enum):
    """Estados posibles de una compra."""
    COMPLETADO = "Completado"
    ANULADO = "Anulado"


class TaskStatus(str, Enum):
    PENDIENTE = "pendiente"
    REALIZADA = "realizada"


class TaskFrequency(str, Enum):
    """Frecuencia de una tarea operativa."""
    UNICO = "unico"           # Una sola vez, completada vía `status`
    CONSTANTE = "constante"   # Mensual, completada por fecha en `completedDates`


class TaskType(str, Enum):
    CREAR_BOLETAS = "CREAR BOLETAS"
    CREAR_FACTURAS = "CREAR FACTURAS"
    PAGOS_VENCIDOS = "PAGOS VENCIDOS"
    TAREA_ADMINISTRATIVA = "TAREA ADMINISTRATIVA"


VALID_CURRENCIES = frozenset(['PEN', 'USD'])
VALID_THEMES = frozenset(['light', 'dark'])

# Usuario maestro: no se puede eliminar
MASTER_USER_ID = 'master-1'


# ==============================================================================
# UTILIDADES DE NORMALIZACIÓN
# ==============================================================================

def normalize_id(value: Any) -> str:
    """
    Convierte un ID a su representación canónica (str).

    Los IDs pueden venir como timestamps numéricos (creados localmente) o como
    UUIDs generados por el backend.
    """
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def same_id(a: Any, b: Any) -> bool:
    """Compara dos IDs sin importar si llegaron como número o texto."""
    return normalize_id(a) == normalize_id(b)


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_number(value: Any) -> float:
    """Cantidad numérica; conserva int cuando el valor es entero (p. ej. 2.0 -> 2)."""
    number = _to_float(value)
    return int(number) if number.is_integer() else number


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'si', 'yes')
    return bool(value)


def _enum_value(enum_cls, value: Any, default):
    """Retorna el valor del enum o el default si no es válido."""
    try:
        return enum_cls(value).value
    except ValueError:
        return default.value


class Record(ABC):
    """
    Base para entidades serializables.

    `normalize` conserva los campos desconocidos del registro original
    (p. ej. `created_at` del backend) y sobrescribe solo los normalizados.
    """

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def normalize(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Normaliza un diccionario a través de la entidad."""
        merged = dict(data or {})
        merged.update(cls.from_dict(data or {}).to_dict())
        return merged

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        """Construye la entidad desde un diccionario crudo."""
        pass


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class SystemUser(Record):
    """
    Usuario del sistema.

    Attributes:
        username: Identificador de acceso (la unicidad la valida el formulario)
        password: Contraseña en texto plano o hash de werkzeug
        photo: Foto de perfil en data-URI (se vacía al guardar en caché)
    """
    id: str
    name: str = ''
    dni: str = ''
    phone: str = ''
    functions: str = ''
    username: str = ''
    password: str = ''
    role: str = UserRole.VENDEDOR.value
    photo: Optional[str] = None
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        if self.photo is None:
            d.pop('photo')
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SystemUser':
        return cls(
            id=normalize_id(data.get('id')),
            name=data.get('name', '') or '',
            dni=str(data.get('dni', '') or ''),
            phone=str(data.get('phone', '') or ''),
            functions=data.get('functions', '') or '',
            username=data.get('username', '') or '',
            password=data.get('password', '') or '',
            role=_enum_value(UserRole, data.get('role'), UserRole.VENDEDOR),
            photo=data.get('photo'),
            active=_to_bool(data.get('active'), True),
        )


# Registro semilla: existe siempre que no haya usuarios en caché/nube
INITIAL_USER: Dict[str, Any] = {
    'id': MASTER_USER_ID,
    'name': 'Alejandro Miranda',
    'dni': '00000000',
    'phone': '999888777',
    'functions': 'Administración Total',
    'username': 'FO-ALEJANDRO',
    'password': '123456',
    'role': UserRole.ADMINISTRADOR.value,
    'active': True,
}


# ==============================================================================
# ENTIDADES DE REFERENCIA
# ==============================================================================

@dataclass
class Product(Record):
    """
    Producto del inventario.

    El stock NO se limita a cero: una venta puede dejarlo negativo.
    Admite fracciones (ventas por kilo), no se trunca a entero.
    """
    id: str
    name: str = ''
    category: str = ''
    unit: str = ProductUnit.KILOS.value
    price: float = 0.0
    stock: float = 0
    active: bool = True
    lastUpdate: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        if self.lastUpdate is None:
            d.pop('lastUpdate')
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=normalize_id(data.get('id')),
            name=data.get('name', '') or '',
            category=data.get('category', '') or '',
            unit=_enum_value(ProductUnit, data.get('unit'), ProductUnit.KILOS),
            price=round(max(0.0, _to_float(data.get('price'))), 2),
            stock=_to_number(round(_to_float(data.get('stock')), 3)),
            active=_to_bool(data.get('active'), True),
            lastUpdate=data.get('lastUpdate'),
        )


@dataclass
class Client(Record):
    id: str
    name: str = ''
    docType: str = 'DNI'
    docNumber: str = ''
    contact: str = ''
    address: str = ''
    active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Client':
        doc_type = data.get('docType') or 'DNI'
        return cls(
            id=normalize_id(data.get('id')),
            name=data.get('name', '') or '',
            docType=doc_type if doc_type in ('DNI', 'RUC') else 'DNI',
            docNumber=str(data.get('docNumber', '') or ''),
            contact=data.get('contact', '') or '',
            address=data.get('address', '') or '',
            active=_to_bool(data.get('active'), True),
        )


@dataclass
class Supplier(Record):
    id: str
    name: str = ''
    ruc: str = ''
    contact: str = ''
    email: str = ''
    address: str = ''
    active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Supplier':
        return cls(
            id=normalize_id(data.get('id')),
            name=data.get('name', '') or '',
            ruc=str(data.get('ruc', '') or ''),
            contact=data.get('contact', '') or '',
            email=data.get('email', '') or '',
            address=data.get('address', '') or '',
            active=_to_bool(data.get('active'), True),
        )


# ==============================================================================
# ENTIDADES TRANSACCIONALES
# ==============================================================================

@dataclass
class SaleItem(Record):
    """
    Línea de venta. Guarda una copia (snapshot) del nombre, unidad y precio
    del producto al momento de la venta.
    """
    productId: str
    productName: str = ''
    quantity: float = 0
    unit: str = ProductUnit.KILOS.value
    unitPrice: float = 0.0
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItem':
        quantity = _to_number(data.get('quantity'))
        unit_price = _to_float(data.get('unitPrice'))
        return cls(
            productId=normalize_id(data.get('productId')),
            productName=data.get('productName', '') or '',
            quantity=quantity,
            unit=_enum_value(ProductUnit, data.get('unit'), ProductUnit.KILOS),
            unitPrice=unit_price,
            total=round(quantity * unit_price, 2),
        )


@dataclass
class PurchaseItem(SaleItem):
    category: str = ''
    sellingPrice: float = 0.0
    initialStock: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PurchaseItem':
        base = SaleItem.from_dict(data)
        return cls(
            productId=base.productId,
            productName=base.productName,
            quantity=base.quantity,
            unit=base.unit,
            unitPrice=base.unitPrice,
            total=base.total,
            category=data.get('category', '') or '',
            sellingPrice=_to_float(data.get('sellingPrice')),
            initialStock=_to_int(data.get('initialStock')),
        )


def _items_total(items: List[SaleItem]) -> float:
    return round(sum(item.total for item in items), 2)


@dataclass
class Sale(Record):
    """
    Venta registrada.

    Invariante: total = Σ(quantity × unitPrice), calculado al guardar.
    Los datos del cliente son una copia al momento de la venta.
    """
    id: str
    date: str = ''
    guideNumber: str = ''
    clientId: str = ''
    clientDocType: str = 'DNI'
    clientDocNumber: str = ''
    clientName: str = ''
    contact: str = ''
    service: str = 'Venta de Frutas'
    documentType: str = 'Boleta'
    documentNumber: str = ''
    docStatus: str = 'Pendiente'
    saleStatus: str = SaleStatus.PENDIENTE.value
    items: List[SaleItem] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['items'] = [item.to_dict() for item in self.items]
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        items = [SaleItem.from_dict(i) for i in (data.get('items') or []) if isinstance(i, dict)]
        return cls(
            id=normalize_id(data.get('id')),
            date=data.get('date', '') or '',
            guideNumber=data.get('guideNumber', '') or '',
            clientId=normalize_id(data.get('clientId')),
            clientDocType=data.get('clientDocType') or 'DNI',
            clientDocNumber=str(data.get('clientDocNumber', '') or ''),
            clientName=data.get('clientName', '') or '',
            contact=data.get('contact', '') or '',
            service=data.get('service') or 'Venta de Frutas',
            documentType=data.get('documentType') or 'Boleta',
            documentNumber=data.get('documentNumber', '') or '',
            docStatus=data.get('docStatus') or 'Pendiente',
            saleStatus=_enum_value(SaleStatus, data.get('saleStatus'), SaleStatus.PENDIENTE),
            items=items,
            total=_items_total(items),
        )


@dataclass
class Purchase(Record):
    """Compra a proveedor. Al registrarse incrementa el stock."""
    id: str
    date: str = ''
    supplierId: str = ''
    supplierName: str = ''
    documentNumber: str = ''
    items: List[PurchaseItem] = field(default_factory=list)
    total: float = 0.0
    status: str = PurchaseStatus.COMPLETADO.value

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['items'] = [item.to_dict() for item in self.items]
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Purchase':
        items = [PurchaseItem.from_dict(i) for i in (data.get('items') or []) if isinstance(i, dict)]
        return cls(
            id=normalize_id(data.get('id')),
            date=data.get('date', '') or '',
            supplierId=normalize_id(data.get('supplierId')),
            supplierName=data.get('supplierName') or 'Desconocido',
            documentNumber=data.get('documentNumber', '') or '',
            items=items,
            total=_items_total(items),
            status=_enum_value(PurchaseStatus, data.get('status'), PurchaseStatus.COMPLETADO),
        )


# ==============================================================================
# TAREAS OPERATIVAS
# ==============================================================================

@dataclass
class OperationalTask(Record):
    """
    Tarea del calendario operativo.

    Attributes:
        date: Fecha ancla (YYYY-MM-DD)
        status: Solo significativo para tareas `unico`
        completedDates: Solo significativo para tareas `constante`
    """
    id: str
    date: str = ''
    type: str = TaskType.TAREA_ADMINISTRATIVA.value
    description: str = ''
    status: str = TaskStatus.PENDIENTE.value
    frequency: str = TaskFrequency.UNICO.value
    completedDates: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OperationalTask':
        completed = data.get('completedDates') or []
        return cls(
            id=normalize_id(data.get('id')),
            date=data.get('date', '') or '',
            type=_enum_value(TaskType, data.get('type'), TaskType.TAREA_ADMINISTRATIVA),
            description=data.get('description', '') or '',
            status=_enum_value(TaskStatus, data.get('status'), TaskStatus.PENDIENTE),
            frequency=_enum_value(TaskFrequency, data.get('frequency'), TaskFrequency.UNICO),
            completedDates=[d for d in completed if isinstance(d, str)],
        )


# ==============================================================================
# ESTADO DE LA APLICACIÓN
# ==============================================================================

# Tablas del dataset (mismo nombre en caché y en el backend remoto)
ENTITY_TABLES = ('products', 'clients', 'suppliers', 'sales', 'purchases', 'users', 'tasks')

ENTITY_TYPES = {
    'products': Product,
    'clients': Client,
    'suppliers': Supplier,
    'sales': Sale,
    'purchases': Purchase,
    'users': SystemUser,
    'tasks': OperationalTask,
}


@dataclass
class IdentityConfig:
    """Configuración de la API externa de consulta DNI/RUC."""
    dniUrl: str = ''
    rucUrl: str = ''
    token: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'dniUrl': self.dniUrl, 'rucUrl': self.rucUrl, 'token': self.token}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'IdentityConfig':
        data = data if isinstance(data, dict) else {}
        return cls(
            dniUrl=data.get('dniUrl', '') or '',
            rucUrl=data.get('rucUrl', '') or '',
            token=data.get('token', '') or '',
        )


@dataclass
class AppState:
    """
    Árbol de estado único de la aplicación.

    Las listas sobreviven al logout; solo `user` se limpia.
    """
    theme: str = 'light'
    currency: str = 'PEN'
    exchangeRate: float = 3.75
    identityConfig: IdentityConfig = field(default_factory=IdentityConfig)
    user: Optional[Dict[str, Any]] = None
    users: List[Dict[str, Any]] = field(default_factory=lambda: [dict(INITIAL_USER)])
    products: List[Dict[str, Any]] = field(default_factory=list)
    clients: List[Dict[str, Any]] = field(default_factory=list)
    suppliers: List[Dict[str, Any]] = field(default_factory=list)
    sales: List[Dict[str, Any]] = field(default_factory=list)
    purchases: List[Dict[str, Any]] = field(default_factory=list)
    tasks: List[Dict[str, Any]] = field(default_factory=list)

    def dataset(self) -> Dict[str, List[Dict[str, Any]]]:
        """Snapshot de todas las listas de entidades (lo que va al caché)."""
        return {table: list(getattr(self, table)) for table in ENTITY_TABLES}

    def apply_dataset(self, dataset: Dict[str, List[Dict[str, Any]]]) -> None:
        """Reemplaza las listas presentes en el dataset."""
        for table in ENTITY_TABLES:
            if table in dataset:
                setattr(self, table, list(dataset[table]))

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'theme': self.theme,
            'currency': self.currency,
            'exchangeRate': self.exchangeRate,
            'identityConfig': self.identityConfig.to_dict(),
            'user': self.user,
        }
        d.update(self.dataset())
        return d
