"""Pruebas de lectura de Excel con libros generados por openpyxl."""

from __future__ import annotations

from datetime import datetime

import pytest
from openpyxl import Workbook

from reporte_diverza.lector_excel import (
    ErrorLecturaArchivo,
    es_archivo_excel,
    leer_grid,
    seleccionar_hoja,
)
from reporte_diverza.pipeline import ingerir_archivo


def _guardar_libro(ruta, hojas):
    """Escribe un libro con ``hojas`` = [(nombre, filas), ...] en orden."""
    libro = Workbook()
    libro.remove(libro.active)
    for nombre, filas in hojas:
        hoja = libro.create_sheet(nombre)
        for fila in filas:
            hoja.append(fila)
    libro.save(ruta)
    return ruta


@pytest.mark.parametrize(
    "nombre, esperado",
    [
        ("reporte.xlsx", True),
        ("REPORTE.XLSX", True),
        ("viejo.xls", True),
        ("datos.csv", False),
        ("sin_extension", False),
    ],
)
def test_es_archivo_excel(nombre, esperado):
    assert es_archivo_excel(nombre) is esperado


def test_seleccionar_hoja_prefiere_reporte_diverza():
    assert seleccionar_hoja(["Notas", "Reporte Diverza", "Otra"]) == "Reporte Diverza"
    assert seleccionar_hoja(["Resumen", "DIVERZA 2024"]) == "DIVERZA 2024"
    assert seleccionar_hoja(["Hoja1", "Hoja2"]) == "Hoja1"


def test_seleccionar_hoja_libro_sin_hojas():
    with pytest.raises(ErrorLecturaArchivo):
        seleccionar_hoja([])


def test_leer_grid_elige_hoja_y_conserva_tipos(tmp_path):
    ruta = _guardar_libro(tmp_path / "libro.xlsx", [
        ("Notas", [["no", "usar"]]),
        ("Reporte Diverza", [
            ["Fecha", "Cliente", "Total", "Comentario"],
            [datetime(2024, 1, 15), "ACME", 1160.5, None],
            [45292, "Beta", "$2,320.00"],
        ]),
    ])
    grid = leer_grid(ruta)
    assert grid[0] == ["Fecha", "Cliente", "Total", "Comentario"]
    assert grid[1][1] == "ACME"
    assert grid[1][2] == pytest.approx(1160.5)
    assert isinstance(grid[1][0], datetime)
    # Las celdas vacias al final de la fila se recortan.
    assert len(grid[1]) == 3
    assert grid[2][0] == 45292


def test_leer_grid_desde_bytes(tmp_path):
    ruta = _guardar_libro(tmp_path / "libro.xlsx", [
        ("Hoja1", [["Cliente", "Total"], ["ACME", 10]]),
    ])
    grid = leer_grid(ruta.read_bytes())
    assert grid == [["Cliente", "Total"], ["ACME", 10]]


def test_leer_grid_archivo_invalido(tmp_path):
    ruta = tmp_path / "falso.xlsx"
    ruta.write_text("esto no es un libro de Excel", encoding="utf-8")
    with pytest.raises(ErrorLecturaArchivo):
        leer_grid(ruta)


def test_leer_grid_archivo_inexistente(tmp_path):
    with pytest.raises(ErrorLecturaArchivo):
        leer_grid(tmp_path / "no_existe.xlsx")


def test_ingerir_archivo_de_punta_a_punta(tmp_path, grid_diverza):
    ruta = _guardar_libro(tmp_path / "diverza.xlsx", [("Reporte", grid_diverza)])
    contexto = ingerir_archivo(ruta)
    assert contexto.nombre_archivo.endswith("diverza.xlsx")
    assert [r.id_registro for r in contexto.registros] == ["1", "2", "3", "4", "7"]
    beta = contexto.registros[1]
    assert beta.fecha == "2024-01-01"
    assert beta.total == pytest.approx(2320.0)


def test_valores_por_defecto_vienen_de_la_configuracion():
    from config import settings
    from reporte_diverza import exportar_excel, lector_excel, pipeline

    assert lector_excel.HOJA_TOKENS is settings.HOJA_TOKENS
    assert lector_excel.EXTENSIONES_EXCEL is settings.EXTENSIONES_EXCEL
    assert pipeline.HOJA_TOKENS is settings.HOJA_TOKENS
    assert exportar_excel.EXCEL_ENGINE is settings.EXCEL_ENGINE
    assert exportar_excel.NOMBRE_BASE == settings.EXCEL_NOMBRES["reporte"]
