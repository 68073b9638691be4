"""Constantes partagées pour éviter les valeurs magiques dans le code.

Ce module regroupe les bornes de validation des profils de voix de marque et les codes de statut
HTTP utilisés par l'API.
"""

# Bornes de validation des profils (invariants vérifiés avant persistance)
MAX_VOCABULARY_TERMS = 200
MAX_STYLE_GUIDES = 50
MAX_EXAMPLES = 50

# Format des versions: v<major>.<minor>.<patch>, composantes de 1 à 9 chiffres
MAX_VERSION_DIGITS = 9
VERSION_PATTERN = r"^v([0-9]{1,9})\.([0-9]{1,9})\.([0-9]{1,9})$"

# Identifiants: UUID canonique 8-4-4-4-12 (hexadécimal)
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_GONE = 410
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500
