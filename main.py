"""Pipeline principal del reporte Diverza.

Lee el Excel exportado por Diverza, normaliza los registros, calcula las
estadisticas de facturacion y clientes, y exporta los resultados:

    01_reporte_diverza_TIMESTAMP.xlsx   Listado + tablas de estadisticas
    02_resumen_diverza_TIMESTAMP.pdf    Resumen ejecutivo con graficas
    listado_clientes_diverza.csv        Listado de clientes (con --csv)

El listado tambien se guarda como sesion JSON para que el dashboard lo
recupere sin volver a subir el archivo.

Uso:
    python main.py reporte.xlsx                         # Pipeline completo
    python main.py reporte.xlsx --skip-pdf              # Sin PDF
    python main.py reporte.xlsx --csv                   # Ademas exporta CSV
    python main.py reporte.xlsx --fecha-referencia 2024-01-01
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

sys.path.insert(0, str(Path(__file__).resolve().parent))

from config.settings import (
    CSV_NOMBRE,
    EXCEL_ENGINE,
    EXCEL_NOMBRES,
    EXTENSIONES_EXCEL,
    HOJA_TOKENS,
    LOG_DATEFMT,
    LOG_FORMAT,
    OUTPUT_DIR,
    POLITICA_CSD,
    SESSION_FILE,
)
from reporte_diverza.clasificacion import POLITICA_ESTRICTA, POLITICA_PERMISIVA
from reporte_diverza.estadisticas import EstadisticasDashboard, estadisticas_a_dataframes
from reporte_diverza.exportar_excel import exportar_reporte
from reporte_diverza.lector_excel import ErrorLecturaArchivo, es_archivo_excel
from reporte_diverza.listado import guardar_csv
from reporte_diverza.pipeline import calcular, ingerir_archivo
from reporte_diverza.reporte_pdf import generar_reporte_pdf
from reporte_diverza.sesion import AlmacenSesion

# ======================================================================
# LOGGING
# ======================================================================

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
logger = logging.getLogger("main")


def _log_resumen(stats: EstadisticasDashboard) -> None:
    logger.info("  Facturas:            %d", stats.total_facturas)
    logger.info("  Monto total:         %s", f"{stats.total_monto:,.2f}")
    logger.info("  IVA total:           %s", f"{stats.total_iva:,.2f}")
    logger.info("  Promedio por factura:%s", f"{stats.promedio_factura:,.2f}")
    logger.info(
        "  Pagadas / canceladas / pendientes: %d / %d / %d",
        stats.facturas_pagadas, stats.facturas_canceladas, stats.facturas_pendientes,
    )
    logger.info(
        "  CSD activos / inactivos: %d / %d | pendientes de firma: %d",
        stats.csd_activos, stats.csd_inactivos, stats.pendientes_firma,
    )


# ======================================================================
# PIPELINE
# ======================================================================

def run_pipeline(
    archivo: Path,
    output_dir: Path = OUTPUT_DIR,
    referencia: Optional[datetime] = None,
    skip_excel: bool = False,
    skip_pdf: bool = False,
    exportar_csv: bool = False,
    guardar_sesion: bool = True,
    politica_csd: str = POLITICA_CSD,
) -> int:
    """Ejecuta el pipeline completo sobre un archivo.

    Pasos:
        1. Lectura y normalizacion del Excel.
        2. Calculo de estadisticas.
        3. Exportacion a Excel, PDF y CSV (segun flags).
        4. Guardado de la sesion.

    Args:
        archivo: Ruta al Excel exportado por Diverza.
        output_dir: Directorio de salida.
        referencia: Fecha contra la que se mide la expiracion del CSD.
            Si es None se usa la hora actual.
        skip_excel: Si True, no genera el Excel.
        skip_pdf: Si True, no genera el PDF.
        exportar_csv: Si True, escribe el listado de clientes en CSV.
        guardar_sesion: Si True, guarda el listado en ``SESSION_FILE``.
        politica_csd: Politica para derivar el estatus del CSD.

    Returns:
        0 si el pipeline termino correctamente, 1 si hubo error fatal.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    referencia = referencia or datetime.now()

    # ------------------------------------------------------------------
    # 1. LECTURA
    # ------------------------------------------------------------------
    logger.info("=" * 60)
    logger.info("PASO 1: Lectura de %s", archivo)
    logger.info("=" * 60)

    if not es_archivo_excel(archivo.name, EXTENSIONES_EXCEL):
        logger.error(
            "Extension no soportada '%s'. Se esperaba: %s",
            archivo.suffix, ", ".join(EXTENSIONES_EXCEL),
        )
        return 1

    try:
        contexto = ingerir_archivo(
            archivo, archivo.name, tokens=HOJA_TOKENS, politica_csd=politica_csd,
        )
    except ErrorLecturaArchivo as exc:
        logger.error("Error al procesar el archivo. Verifica el formato. (%s)", exc)
        return 1

    if not contexto.tiene_datos:
        logger.warning("El archivo no contiene registros validos.")

    # ------------------------------------------------------------------
    # 2. ESTADISTICAS
    # ------------------------------------------------------------------
    logger.info("=" * 60)
    logger.info("PASO 2: Estadisticas (referencia: %s)", referencia.strftime("%Y-%m-%d"))
    logger.info("=" * 60)

    stats = calcular(contexto, referencia)
    tablas = estadisticas_a_dataframes(stats)
    _log_resumen(stats)

    # ------------------------------------------------------------------
    # 3. EXPORTACION
    # ------------------------------------------------------------------
    logger.info("=" * 60)
    logger.info("PASO 3: Exportacion")
    logger.info("=" * 60)

    generados: list[Path] = []

    if not skip_excel:
        generados.append(exportar_reporte(
            contexto.registros, stats, output_dir, timestamp,
            nombre_base=EXCEL_NOMBRES["reporte"], tablas=tablas, engine=EXCEL_ENGINE,
        ))

    if not skip_pdf:
        pdf_path = output_dir / f"{EXCEL_NOMBRES['pdf']}_{timestamp}.pdf"
        try:
            generados.append(generar_reporte_pdf(
                stats, pdf_path, datetime.now().strftime("%Y-%m-%d %H:%M"), tablas=tablas,
            ))
        except Exception as exc:
            # Una falla del PDF no detiene el pipeline.
            logger.error("No se pudo generar el PDF: %s", exc)

    if exportar_csv:
        generados.append(guardar_csv(contexto.registros, output_dir / CSV_NOMBRE))

    # ------------------------------------------------------------------
    # 4. SESION
    # ------------------------------------------------------------------
    if guardar_sesion:
        AlmacenSesion(SESSION_FILE).guardar(contexto.registros, contexto.nombre_archivo)

    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETADO EXITOSAMENTE")
    logger.info("%d archivos generados en: %s", len(generados), output_dir.resolve())
    for ruta in generados:
        logger.info("  %s", ruta.name)
    logger.info("=" * 60)

    return 0


# ======================================================================
# CLI
# ======================================================================

def _fecha_arg(valor: str) -> datetime:
    try:
        return datetime.strptime(valor, "%Y-%m-%d")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Fecha invalida '{valor}'; se espera YYYY-MM-DD.",
        ) from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parsea los argumentos de linea de comandos."""
    parser = argparse.ArgumentParser(
        description="Pipeline del reporte Diverza: facturacion y clientes.",
    )
    parser.add_argument(
        "archivo",
        type=Path,
        help="Excel exportado por Diverza (.xlsx).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=OUTPUT_DIR,
        help=f"Directorio de salida (por defecto {OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--fecha-referencia",
        type=_fecha_arg,
        default=None,
        help="Fecha YYYY-MM-DD para medir la expiracion del CSD (por defecto hoy).",
    )
    parser.add_argument(
        "--politica-csd",
        choices=[POLITICA_ESTRICTA, POLITICA_PERMISIVA],
        default=POLITICA_CSD,
        help="Politica para derivar el estatus del CSD.",
    )
    parser.add_argument(
        "--skip-excel",
        action="store_true",
        help="No generar el archivo Excel.",
    )
    parser.add_argument(
        "--skip-pdf",
        action="store_true",
        help="No generar el resumen PDF.",
    )
    parser.add_argument(
        "--csv",
        action="store_true",
        help="Exportar tambien el listado de clientes en CSV.",
    )
    parser.add_argument(
        "--no-sesion",
        action="store_true",
        help="No guardar el listado como sesion del dashboard.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Punto de entrada principal.

    Returns:
        0 si todo salio bien, 1 si hubo error fatal.
    """
    try:
        args = parse_args(argv)
    except SystemExit as exc:
        # argparse sale con 2 en argumentos invalidos y con 0 en --help.
        return 0 if exc.code in (0, None) else 1
    logger.info("Pipeline del Reporte Diverza")
    logger.info("Fecha: %s", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))

    return run_pipeline(
        archivo=args.archivo,
        output_dir=args.output_dir,
        referencia=args.fecha_referencia,
        skip_excel=args.skip_excel,
        skip_pdf=args.skip_pdf,
        exportar_csv=args.csv,
        guardar_sesion=not args.no_sesion,
        politica_csd=args.politica_csd,
    )


if __name__ == "__main__":
    sys.exit(main())
