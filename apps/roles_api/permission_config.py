# Catálogo estático de formularios protegidos y pestañas de la consola.
# Los códigos de formulario son los que referencian RoleFormPermission y
# las pestañas son los identificadores guardados en User.allowed_tabs.

CITAS = 'CITAS'
USERS = 'USERS'
ROLES = 'ROLES'
SEDES = 'SEDES'
TIPOS_CITA = 'TIPOS_CITA'
HORAS_DISPONIBLES = 'HORAS_DISPONIBLES'
PERMISSIONS = 'PERMISSIONS'

FORMS = [
    (CITAS, 'Citas'),
    (USERS, 'Empleados'),
    (ROLES, 'Roles'),
    (SEDES, 'Sedes'),
    (TIPOS_CITA, 'Tipos de Cita'),
    (HORAS_DISPONIBLES, 'Horas Disponibles'),
    (PERMISSIONS, 'Gestión de Permisos'),
]

OPERATIONS = {
    'read': 'can_read',
    'create': 'can_create',
    'update': 'can_update',
    'delete': 'can_delete',
}

# tab_id -> (nombre, formulario que la respalda)
TABS = {
    'citas': ('Citas', CITAS),
    'empleados': ('Empleados', USERS),
    'roles': ('Roles', ROLES),
    'sedes': ('Sedes', SEDES),
    'tipos-cita': ('Tipos de Cita', TIPOS_CITA),
    'horas-disponibles': ('Horas Disponibles', HORAS_DISPONIBLES),
    'permisos': ('Gestión de Permisos', PERMISSIONS),
}

# Plantillas CRUD creadas por seed_catalog: (read, create, update, delete)
BASELINE_PERMISSIONS = [
    (True, False, False, False),
    (True, False, True, False),
    (True, True, True, False),
    (True, True, True, True),
]

BASELINE_ROLES = {
    'ADMIN': {
        'name': 'Administrador',
        'forms': {code: (True, True, True, True) for code, _ in FORMS},
    },
    'OPERATOR': {
        'name': 'Operador de citas',
        'forms': {
            CITAS: (True, False, True, False),
            SEDES: (True, False, False, False),
            TIPOS_CITA: (True, False, False, False),
            HORAS_DISPONIBLES: (True, False, False, False),
        },
    },
}


def form_for_tab(tab_id):
    tab = TABS.get(tab_id)
    return tab[1] if tab else None
