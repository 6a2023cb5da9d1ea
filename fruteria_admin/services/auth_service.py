# ==============================================================================
# SERVICIO DE AUTENTICACIÓN
# ==============================================================================
# Busca el usuario por username + contraseña + activo en la lista en memoria.
#
# Contraseñas: por compatibilidad con los datos existentes se comparan en
# texto plano. Si el valor guardado es un hash de werkzeug (pbkdf2:/scrypt:)
# se verifica con check_password_hash. Con HASH_PASSWORDS=1 las contraseñas
# nuevas se guardan hasheadas; el contrato login(username, password) no cambia.
# ==============================================================================

import hmac
from typing import Any, Dict, Iterable, Optional

from werkzeug.security import generate_password_hash, check_password_hash

# Mensaje único: nunca indicar si falló el usuario o la contraseña
INVALID_CREDENTIALS = 'Usuario o contraseña incorrectos'

HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


class AuthService:
    """
    Puerta de sesión.

    Responsabilidades:
    - Verificar credenciales contra la lista de usuarios
    - Preparar contraseñas para guardar (hash opcional)
    """

    def __init__(self, hash_passwords: bool = False):
        """
        Args:
            hash_passwords: Si True, prepare_password guarda hashes de werkzeug
        """
        self.hash_passwords = hash_passwords

    @staticmethod
    def is_hashed(stored: str) -> bool:
        return isinstance(stored, str) and stored.startswith(HASH_PREFIXES)

    def verify_password(self, stored: str, given: str) -> bool:
        """
        Compara la contraseña ingresada con la guardada.

        Args:
            stored: Valor guardado (texto plano o hash)
            given: Contraseña ingresada en texto plano

        Returns:
            True si coinciden
        """
        if not isinstance(stored, str) or not isinstance(given, str):
            return False
        if self.is_hashed(stored):
            return check_password_hash(stored, given)
        # Password en texto plano (legacy)
        return hmac.compare_digest(stored.encode('utf-8'), given.encode('utf-8'))

    def authenticate(
        self,
        users: Iterable[Dict[str, Any]],
        username: str,
        password: str
    ) -> Optional[Dict[str, Any]]:
        """
        Recorre la lista de usuarios buscando una coincidencia exacta.

        Returns:
            El usuario si username y contraseña coinciden y está activo, None si no
        """
        for user in users or []:
            if user.get('username') != username:
                continue
            if not user.get('active', False):
                continue
            if self.verify_password(user.get('password', ''), password):
                return user
        return None

    def prepare_password(self, raw: str) -> str:
        """Retorna la contraseña tal como debe guardarse."""
        if self.hash_passwords and raw and not self.is_hashed(raw):
            return generate_password_hash(raw)
        return raw
