"""Pruebas de la resolucion de columnas."""

from __future__ import annotations

from reporte_diverza.columnas import (
    CAMPOS_DIVERZA,
    normalizar_encabezados,
    resolver_columna,
    resolver_columnas,
)

from conftest import ENCABEZADOS


def test_normalizar_encabezados_minusculas_y_sin_espacios():
    assert normalizar_encabezados(["  Fecha ", "CLIENTE", None, 7]) == [
        "fecha", "cliente", "", "7",
    ]


def test_normalizar_encabezados_fila_vacia():
    assert normalizar_encabezados(None) == []
    assert normalizar_encabezados([]) == []


def test_resolver_columna_ignora_mayusculas_y_espacios():
    encabezados = normalizar_encabezados(["  RFC  ", " Régimen Fiscal "])
    assert resolver_columna(encabezados, ("regimen", "régimen")) == 1
    assert resolver_columna(encabezados, ("rfc",)) == 0


def test_resolver_columna_prioriza_candidatos_sobre_posicion():
    # "nombre" aparece antes en la fila, pero "cliente" tiene prioridad.
    encabezados = ["nombre comercial", "cliente"]
    assert resolver_columna(encabezados, ("cliente", "nombre")) == 1


def test_resolver_columna_primer_encabezado_que_contiene():
    encabezados = ["fecha", "fecha firma"]
    assert resolver_columna(encabezados, ("fecha",)) == 0


def test_resolver_columna_sin_coincidencia():
    assert resolver_columna(["a", "b"], ("zzz",)) is None


def test_resolver_columnas_grid_completo():
    indices = resolver_columnas(normalizar_encabezados(ENCABEZADOS))
    assert set(indices) == set(CAMPOS_DIVERZA)
    assert indices["id_registro"] == ENCABEZADOS.index("ID")
    assert indices["fecha"] == ENCABEZADOS.index("Fecha")
    assert indices["cliente"] == ENCABEZADOS.index("Cliente")
    assert indices["razon_social"] == ENCABEZADOS.index("Razón Social")
    assert indices["total"] == ENCABEZADOS.index("Total")
    assert indices["subtotal"] == ENCABEZADOS.index("Subtotal")
    assert indices["regimen"] == ENCABEZADOS.index("Régimen")
    assert indices["csd"] == ENCABEZADOS.index("CSD")
    assert indices["exp_csd"] == ENCABEZADOS.index("Exp. CSD")
    assert indices["fecha_firma"] == ENCABEZADOS.index("Fecha Firma")
    assert indices["email"] == ENCABEZADOS.index("Email")


def test_resolver_columnas_campos_ausentes_quedan_none():
    indices = resolver_columnas(["fecha", "total"])
    assert indices["fecha"] == 0
    assert indices["total"] == 1
    assert indices["cliente"] is None
    assert indices["gerencia"] is None
