"""Pruebas del motor de estadisticas (referencia fija 2024-01-01)."""

from __future__ import annotations

import pytest

from reporte_diverza.clasificacion import (
    EXPIRACION_1_2,
    EXPIRACION_6_12,
    EXPIRACION_MENOS_6,
    ORDEN_EXPIRACION,
)
from reporte_diverza.estadisticas import calcular_estadisticas, estadisticas_a_dataframes
from reporte_diverza.normalizador import RegistroDiverza, normalizar_registros


@pytest.fixture
def stats(grid_diverza, referencia):
    return calcular_estadisticas(normalizar_registros(grid_diverza), referencia)


def test_listado_vacio():
    stats = calcular_estadisticas([])
    assert stats.total_facturas == 0
    assert stats.total_monto == 0.0
    assert stats.promedio_factura == 0.0
    assert stats.por_cliente == {}


def test_totales(stats):
    assert stats.total_facturas == 5
    assert stats.total_registros == 5
    assert stats.total_monto == pytest.approx(4176.0)
    assert stats.total_iva == pytest.approx(576.0)
    assert stats.promedio_factura == pytest.approx(835.2)


def test_estados_exhaustivos(stats):
    assert stats.facturas_pagadas == 2
    assert stats.facturas_canceladas == 1
    assert stats.facturas_pendientes == 2
    assert (
        stats.facturas_pagadas + stats.facturas_canceladas + stats.facturas_pendientes
        == stats.total_facturas
    )


def test_por_cliente_excluye_registros_sin_cliente(stats):
    assert stats.por_cliente == {
        "ACME": pytest.approx(1160.0),
        "Beta": pytest.approx(2320.0),
        "Gamma": pytest.approx(580.0),
        "Delta": 0.0,
    }
    # El registro sin cliente (116) cuenta en el total pero no en por_cliente.
    assert sum(stats.por_cliente.values()) == pytest.approx(stats.total_monto - 116.0)


def test_por_cliente_suma_total_cuando_todos_tienen_cliente(grid_grande):
    stats = calcular_estadisticas(normalizar_registros(grid_grande))
    assert stats.total_facturas == 200
    assert sum(stats.por_cliente.values()) == pytest.approx(stats.total_monto)
    assert sum(stats.por_mes.values()) == pytest.approx(stats.total_monto)
    assert (
        stats.facturas_pagadas + stats.facturas_canceladas + stats.facturas_pendientes
        == 200
    )


def test_por_mes_y_estado(stats):
    assert stats.por_mes == {
        "ene 2024": pytest.approx(3480.0),
        "feb 2024": pytest.approx(696.0),
        "mar 2024": 0.0,
    }
    assert stats.por_estado == {
        "Pagada": 1,
        "Cancelada": 1,
        "Pendiente de pago": 1,
        "Pendiente": 1,
        "paid": 1,
    }


def test_clientes_csd_y_firma(stats):
    assert stats.csd_activos == 2
    assert stats.csd_inactivos == 2
    assert stats.pendientes_firma == 1


def test_agrupaciones_de_clientes(stats):
    assert stats.por_gerencia == {
        "Monterrey": 2,
        "Matriz CDMX, Centro": 1,
        "N/A": 1,
        "Guadalajara": 1,
    }
    assert stats.por_regimen == {"PM": 1, "RESICO": 1, "PFAE": 1, "Otro": 2}
    assert stats.por_mes_firma == {"ene 2023": 2, "feb 2023": 2}


def test_expiracion_omite_fechas_invalidas(stats):
    assert stats.por_expiracion == {
        EXPIRACION_MENOS_6: 1,
        EXPIRACION_6_12: 1,
        EXPIRACION_1_2: 1,
    }


def test_expiracion_depende_de_la_referencia(grid_diverza):
    from datetime import datetime

    registros = normalizar_registros(grid_diverza)
    posterior = calcular_estadisticas(registros, datetime(2025, 1, 1))
    # En 2025 los tres CSD con fecha valida vencen en menos de 6 meses.
    assert posterior.por_expiracion == {EXPIRACION_MENOS_6: 3}


def test_pendiente_firma_con_espacios():
    registros = [RegistroDiverza(cliente="A", fecha_firma="   ")]
    assert calcular_estadisticas(registros).pendientes_firma == 1


def test_dataframes_ordenados(stats):
    tablas = estadisticas_a_dataframes(stats)
    assert set(tablas) == {
        "resumen", "por_cliente", "por_mes", "por_estado", "por_gerencia",
        "por_regimen", "por_mes_firma", "por_expiracion",
    }
    assert tablas["por_mes"]["MES"].tolist() == ["ene 2024", "feb 2024", "mar 2024"]
    assert tablas["por_cliente"]["CLIENTE"].tolist() == ["Beta", "ACME", "Gamma", "Delta"]
    assert tablas["por_gerencia"]["GERENCIA"].iloc[0] == "Monterrey"
    esperado = [h for h in ORDEN_EXPIRACION if h in stats.por_expiracion]
    assert tablas["por_expiracion"]["HORIZONTE_EXPIRACION"].tolist() == esperado

    resumen = dict(zip(tablas["resumen"]["METRICA"], tablas["resumen"]["VALOR"]))
    assert resumen["Total de facturas"] == 5
    assert resumen["Monto total"] == pytest.approx(4176.0)
