# core/utils/excel_export.py
import pandas as pd
from django.http import HttpResponse
from django.utils import timezone
from io import BytesIO

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _filename(filename, extension):
    if filename is None:
        timestamp = timezone.now().strftime('%Y%m%d_%H%M%S')
        filename = f'export_{timestamp}'

    if not filename.endswith(extension):
        filename = f'{filename}{extension}'
    return filename


def to_dataframe(data):
    """DataFrame from a DataFrame or a list of dictionaries"""
    if isinstance(data, pd.DataFrame):
        return data
    return pd.DataFrame(list(data))


def export_multiple_sheets(data_dict, filename=None):
    """
    Export several tables to different sheets of one workbook.

    Args:
        data_dict: Dictionary of {sheet_name: data}
        filename: Output filename

    Returns:
        HttpResponse with Excel file
    """
    filename = _filename(filename, '.xlsx')

    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    with BytesIO() as bio:
        with pd.ExcelWriter(bio, engine='openpyxl') as writer:
            for sheet_name, data in data_dict.items():
                # Excel caps sheet names at 31 characters
                to_dataframe(data).to_excel(writer, sheet_name=sheet_name[:31], index=False)

        response.write(bio.getvalue())

    return response


def export_to_csv(data, filename=None):
    """Export data to CSV format."""
    filename = _filename(filename, '.csv')

    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response.write(to_dataframe(data).to_csv(index=False))
    return response
