"""Pruebas de las politicas de clasificacion."""

from __future__ import annotations

from datetime import datetime

import pytest

from reporte_diverza.clasificacion import (
    CSD_ACTIVO,
    CSD_INACTIVO,
    ESTADO_CANCELADA,
    ESTADO_PAGADA,
    ESTADO_PENDIENTE,
    EXPIRACION_1_2,
    EXPIRACION_6_12,
    EXPIRACION_MAS_2,
    EXPIRACION_MENOS_6,
    POLITICA_PERMISIVA,
    REGIMEN_OTRO,
    REGIMEN_PFAE,
    REGIMEN_PM,
    REGIMEN_RESICO,
    SIN_FECHA,
    Regla,
    aplicar_reglas,
    clasificar_csd,
    clasificar_estado,
    clasificar_expiracion,
    clasificar_regimen,
    etiqueta_mes,
    meses_para_expirar,
    normalizar_gerencia,
    ordenar_meses,
    regimen_corto,
)

REFERENCIA = datetime(2024, 1, 1)


def test_aplicar_reglas_primera_coincidencia_gana():
    reglas = (
        Regla(lambda v: v > 10, "grande"),
        Regla(lambda v: v > 0, "positivo"),
    )
    assert aplicar_reglas(reglas, 50, "otro") == "grande"
    assert aplicar_reglas(reglas, 5, "otro") == "positivo"
    assert aplicar_reglas(reglas, -1, "otro") == "otro"


# ======================================================================
# ESTADO
# ======================================================================

@pytest.mark.parametrize(
    "estado, esperado",
    [
        ("Pagada", ESTADO_PAGADA),
        ("PAID", ESTADO_PAGADA),
        ("Cancelada", ESTADO_CANCELADA),
        ("cancelled", ESTADO_CANCELADA),
        ("Pendiente", ESTADO_PENDIENTE),
        ("Pendiente de pago", ESTADO_PENDIENTE),
        ("", ESTADO_PENDIENTE),
        (None, ESTADO_PENDIENTE),
    ],
)
def test_clasificar_estado(estado, esperado):
    assert clasificar_estado(estado) == esperado


# ======================================================================
# REGIMEN
# ======================================================================

@pytest.mark.parametrize(
    "regimen, esperado",
    [
        ("Régimen de Actividades Empresariales y RESICO", REGIMEN_PFAE),
        ("PFAE", REGIMEN_PFAE),
        ("Régimen Simplificado de Confianza", REGIMEN_RESICO),
        ("resico", REGIMEN_RESICO),
        ("Persona Moral", REGIMEN_PM),
        ("Sueldos y salarios", REGIMEN_OTRO),
        ("", REGIMEN_OTRO),
    ],
)
def test_clasificar_regimen(regimen, esperado):
    assert clasificar_regimen(regimen) == esperado


def test_regimen_corto():
    assert regimen_corto("") == "—"
    assert regimen_corto("Persona Moral") == REGIMEN_PM
    assert regimen_corto("Sueldos") == "Sueldos"
    assert regimen_corto("Sueldos y salarios e ingresos asimilados") == "Sueldos y salarios e..."


# ======================================================================
# CSD
# ======================================================================

@pytest.mark.parametrize(
    "texto, esperado",
    [
        ("Activo", CSD_ACTIVO),
        ("ACTIVO ", CSD_ACTIVO),
        ("sí", CSD_ACTIVO),
        ("Si", CSD_ACTIVO),
        ("Inactivo", CSD_INACTIVO),
        ("NO", CSD_INACTIVO),
        ("vencido", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_clasificar_csd_estricta(texto, esperado):
    assert clasificar_csd(texto) == esperado


def test_clasificar_csd_permisiva_todo_no_afirmativo_es_inactivo():
    assert clasificar_csd("vencido", POLITICA_PERMISIVA) == CSD_INACTIVO
    assert clasificar_csd("Activo", POLITICA_PERMISIVA) == CSD_ACTIVO
    assert clasificar_csd("", POLITICA_PERMISIVA) == ""


def test_clasificar_csd_politica_desconocida():
    with pytest.raises(ValueError):
        clasificar_csd("Activo", "laxa")


# ======================================================================
# GERENCIA
# ======================================================================

def test_normalizar_gerencia():
    assert normalizar_gerencia("Monterrey, N.L., Norte") == "Monterrey"
    assert normalizar_gerencia("  Puebla ") == "Puebla"
    assert normalizar_gerencia("Matriz CDMX, Centro") == "Matriz CDMX, Centro"
    assert normalizar_gerencia("") == ""


# ======================================================================
# EXPIRACION
# ======================================================================

@pytest.mark.parametrize(
    "exp_csd, esperado",
    [
        ("2024-03-01", EXPIRACION_MENOS_6),
        ("2023-06-01", EXPIRACION_MENOS_6),
        ("2024-10-01", EXPIRACION_6_12),
        ("2025-06-01", EXPIRACION_1_2),
        ("2026-06-01", EXPIRACION_MAS_2),
    ],
)
def test_clasificar_expiracion(exp_csd, esperado):
    assert clasificar_expiracion(exp_csd, REFERENCIA) == esperado


def test_clasificar_expiracion_fecha_invalida():
    assert clasificar_expiracion("fecha mala", REFERENCIA) is None


def test_meses_para_expirar_usa_meses_de_30_dias():
    assert meses_para_expirar("2024-01-31", REFERENCIA) == pytest.approx(1.0)


# ======================================================================
# MESES
# ======================================================================

def test_etiqueta_mes():
    assert etiqueta_mes("2024-01-15") == "ene 2024"
    assert etiqueta_mes("2023-09-30") == "sept 2023"
    assert etiqueta_mes("") == SIN_FECHA
    assert etiqueta_mes("texto libre") == "texto l"


def test_ordenar_meses_cronologico():
    etiquetas = ["mar 2024", "Sin fecha", "dic 2023", "ene 2024", "2023-05", "sept 2023"]
    assert ordenar_meses(etiquetas) == [
        "2023-05", "sept 2023", "dic 2023", "ene 2024", "mar 2024", "Sin fecha",
    ]
