from pg_ninja.export.excel import ExcelExporter

__all__ = ["ExcelExporter"]
