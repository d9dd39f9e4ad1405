"""Pruebas del listado: filtros, ordenamiento y CSV."""

from __future__ import annotations

import io

import pandas as pd
import pytest

from reporte_diverza.clasificacion import CSD_ACTIVO, CSD_INACTIVO, EXPIRACION_6_12
from reporte_diverza.listado import (
    COLUMNAS_CSV,
    FiltroListado,
    exportar_csv,
    filtrar_registros,
    guardar_csv,
    ordenar_registros,
    regimenes_disponibles,
)
from reporte_diverza.normalizador import normalizar_registros


@pytest.fixture
def registros(grid_diverza):
    return normalizar_registros(grid_diverza)


def _ids(registros):
    return [r.id_registro for r in registros]


# ======================================================================
# FILTROS
# ======================================================================

def test_filtro_vacio_devuelve_todo(registros, referencia):
    assert filtrar_registros(registros, FiltroListado(), referencia) == registros


def test_busqueda_sin_distinguir_mayusculas(registros, referencia):
    assert _ids(filtrar_registros(registros, FiltroListado(busqueda="ACME SA"), referencia)) == ["1"]
    assert _ids(filtrar_registros(registros, FiltroListado(busqueda="bet020"), referencia)) == ["2"]
    assert _ids(filtrar_registros(registros, FiltroListado(busqueda="monterrey"), referencia)) == ["1", "3"]
    assert _ids(filtrar_registros(registros, FiltroListado(busqueda="@correo"), referencia)) == ["3"]


def test_filtro_csd(registros, referencia):
    activos = filtrar_registros(registros, FiltroListado(csd=CSD_ACTIVO), referencia)
    assert _ids(activos) == ["1", "3"]
    # Inactivo incluye todo lo que no es Activo, tambien el CSD vacio.
    inactivos = filtrar_registros(registros, FiltroListado(csd=CSD_INACTIVO), referencia)
    assert _ids(inactivos) == ["2", "4", "7"]


def test_filtro_regimen_exacto(registros, referencia):
    filtro = FiltroListado(regimen="Persona Moral")
    assert _ids(filtrar_registros(registros, filtro, referencia)) == ["1"]


@pytest.mark.parametrize(
    "tipo, valor, esperado",
    [
        ("mes", "ene 2023", ["1", "4"]),
        ("gerencia", "Monterrey", ["1", "3"]),
        ("regimen", "Otro", ["4", "7"]),
        ("expiracion", EXPIRACION_6_12, ["2"]),
    ],
)
def test_drilldown_coincide_con_estadisticas(registros, referencia, tipo, valor, esperado):
    filtro = FiltroListado(tipo=tipo, valor=valor)
    assert _ids(filtrar_registros(registros, filtro, referencia)) == esperado


def test_drilldown_tipo_desconocido_se_ignora(registros, referencia):
    filtro = FiltroListado(tipo="color", valor="rojo")
    assert filtrar_registros(registros, filtro, referencia) == registros


def test_filtros_combinados(registros, referencia):
    filtro = FiltroListado(busqueda="monterrey", csd=CSD_ACTIVO, tipo="regimen", valor="PFAE")
    assert _ids(filtrar_registros(registros, filtro, referencia)) == ["3"]


# ======================================================================
# ORDENAMIENTO
# ======================================================================

def test_ordenar_numerico(registros):
    assert _ids(ordenar_registros(registros, "total")) == ["4", "7", "3", "1", "2"]
    assert _ids(ordenar_registros(registros, "total", descendente=True)) == ["2", "1", "3", "7", "4"]


def test_ordenar_texto_sin_mayusculas(registros):
    ordenados = ordenar_registros(registros, "razon_social")
    assert [r.razon_social for r in ordenados] == [
        "Acme SA de CV", "Beta Servicios", "Delta Distribuciones",
        "Gamma Consultores", "Sin Nombre SA",
    ]


def test_ordenar_columna_desconocida(registros):
    with pytest.raises(ValueError):
        ordenar_registros(registros, "no_existe")


def test_regimenes_disponibles(registros):
    assert regimenes_disponibles(registros) == [
        "Persona Moral",
        "Régimen Simplificado de Confianza",
        "Actividades Empresariales y Profesionales",
        "N/A",
        "Otro regimen",
    ]


# ======================================================================
# CSV
# ======================================================================

def test_exportar_csv_encabezados_y_comillas(registros):
    texto = exportar_csv(registros)
    primera_linea = texto.splitlines()[0]
    assert primera_linea == (
        '"ID","Razón Social","RFC","Gerencia","Régimen","CSD","Exp. CSD","Fecha Firma","Email"'
    )
    assert len(texto.splitlines()) == len(registros) + 1


def test_exportar_csv_se_puede_releer(registros):
    df = pd.read_csv(io.StringIO(exportar_csv(registros)), dtype=str, keep_default_na=False)
    assert list(df.columns) == list(COLUMNAS_CSV.values())
    assert df["ID"].tolist() == ["1", "2", "3", "4", "7"]
    assert df["Gerencia"].tolist()[1] == "Matriz CDMX, Centro"
    assert df["CSD"].tolist() == ["Activo", "Inactivo", "Activo", "", "Inactivo"]
    assert df["Email"].tolist()[0] == "contacto@acme.mx"


def test_exportar_csv_vacio_solo_encabezado():
    assert exportar_csv([]).strip().count("\n") == 0


def test_guardar_csv(registros, tmp_path):
    ruta = guardar_csv(registros, tmp_path / "salida" / "listado.csv")
    assert ruta.exists()
    assert ruta.read_text(encoding="utf-8") == exportar_csv(registros)
