"""Fixtures compartidas: grids sinteticos que imitan el exporte de Diverza.

El grid principal cubre los casos que los modulos necesitan:
    - Total con simbolo de moneda y separador de miles.
    - Fecha como serial de Excel y como texto no ISO.
    - Estados pagada / cancelada / pendiente (incluido "paid" en ingles).
    - CSD afirmativo, negativo y vacio.
    - Gerencia con sufijo ", ..." y gerencia Matriz.
    - Expiracion de CSD en cada horizonte, vacia e ilegible.
    - Una fila sin cliente con total 0 (se descarta).
    - Una fila sin cliente con total positivo (se acepta).
    - Una fila completamente vacia.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import pytest

# ── Asegurar que el raiz del proyecto este en el path ─────────────────
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

ENCABEZADOS: list[str] = [
    "ID", "Fecha", "Cliente", "Razón Social", "RFC", "Concepto",
    "Total", "Subtotal", "IVA", "Estado", "UUID", "Gerencia",
    "Régimen", "CSD", "Exp. CSD", "Fecha Firma", "Email",
]

REFERENCIA: datetime = datetime(2024, 1, 1)


def _fila(**valores: Any) -> list[Any]:
    return [valores.get(encabezado) for encabezado in ENCABEZADOS]


@pytest.fixture
def referencia() -> datetime:
    return REFERENCIA


@pytest.fixture
def grid_diverza() -> list[list[Any]]:
    """Grid crudo con encabezados en la fila 0."""
    return [
        list(ENCABEZADOS),
        _fila(**{
            "ID": 1, "Fecha": "2024-01-15", "Cliente": "ACME",
            "Razón Social": "Acme SA de CV", "RFC": "ACM010101AAA",
            "Concepto": "Servicio", "Total": 1160, "Subtotal": 1000, "IVA": 160,
            "Estado": "Pagada", "UUID": "u-1", "Gerencia": "Monterrey, N.L., Norte",
            "Régimen": "Persona Moral", "CSD": "Activo", "Exp. CSD": "2024-03-01",
            "Fecha Firma": "2023-01-10", "Email": "contacto@acme.mx",
        }),
        _fila(**{
            "ID": 2, "Fecha": 45292, "Cliente": "Beta",
            "Razón Social": "Beta Servicios", "RFC": "BET020202BBB",
            "Concepto": "Licencia", "Total": "$2,320.00", "Subtotal": "2,000",
            "IVA": "320", "Estado": "Cancelada", "UUID": "u-2",
            "Gerencia": "Matriz CDMX, Centro",
            "Régimen": "Régimen Simplificado de Confianza", "CSD": "Inactivo",
            "Exp. CSD": "2024-10-01", "Fecha Firma": "2023-02-05",
            "Email": "admin@beta.mx",
        }),
        _fila(**{
            "ID": 3, "Fecha": "2024-02-03", "Cliente": "Gamma",
            "Razón Social": "Gamma Consultores", "RFC": "GAM030303CCC",
            "Concepto": "Asesoria", "Total": 580, "Subtotal": 500, "IVA": 80,
            "Estado": "Pendiente de pago", "UUID": "u-3",
            "Gerencia": "Monterrey, N.L., Sur",
            "Régimen": "Actividades Empresariales y Profesionales", "CSD": "Sí",
            "Exp. CSD": "2025-06-01", "Fecha Firma": "", "Email": "gamma@correo.mx",
        }),
        _fila(**{
            "ID": 4, "Fecha": "2024/03/05", "Cliente": "Delta",
            "Razón Social": "Delta Distribuciones", "Total": "N/A",
            "Fecha Firma": "2023-01-20",
        }),
        _fila(**{"ID": 5, "Fecha": "2024-02-10", "Total": 0}),
        [None] * len(ENCABEZADOS),
        _fila(**{
            "ID": 7, "Fecha": "2024-02-11", "Razón Social": "Sin Nombre SA",
            "Total": 116, "Subtotal": 100, "IVA": 16, "Estado": "paid",
            "Gerencia": "Guadalajara", "Régimen": "Otro regimen", "CSD": "NO",
            "Exp. CSD": "fecha mala", "Fecha Firma": "2023-02-28",
        }),
    ]


@pytest.fixture
def grid_grande() -> list[list[Any]]:
    """Grid de 200 facturas aleatorias (semilla fija), todas con cliente."""
    rng = np.random.default_rng(42)
    clientes = [
        "EMPRESA ALPHA SA", "COMERCIAL BETA SC", "GRUPO GAMMA SRL",
        "DISTRIBUIDORA DELTA", "SERVICIOS EPSILON",
    ]
    estados = ["Pagada", "Cancelada", "Pendiente", "PAID", ""]
    grid: list[list[Any]] = [["Fecha", "Cliente", "Total", "IVA", "Estado"]]
    for _ in range(200):
        total = round(float(rng.uniform(100, 50_000)), 2)
        grid.append([
            f"2024-{int(rng.integers(1, 13)):02d}-{int(rng.integers(1, 29)):02d}",
            clientes[int(rng.integers(0, len(clientes)))],
            total,
            round(total * 0.16 / 1.16, 2),
            estados[int(rng.integers(0, len(estados)))],
        ])
    return grid
