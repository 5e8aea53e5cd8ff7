import pandas as pd
import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
import os
import logging
from datetime import datetime
from typing import Optional, Dict, List

from models import SORT_LABELS, display_label

ROSTER_COLUMNS = {
    'roll_number': 'Roll Number',
    'name': 'Name',
    'student_class': 'Class',
    'marks': 'Marks',
    'gender': 'Gender',
    'contact': 'Contact',
}


class ExcelHandler:
    def __init__(self, export_folder: str = 'exports'):
        self.logger = logging.getLogger(__name__)
        self.export_folder = export_folder

    def _timestamped_path(self, prefix: str) -> str:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        os.makedirs(self.export_folder, exist_ok=True)
        return os.path.join(self.export_folder, f"{prefix}_{timestamp}.xlsx")

    def _style_sheet(self, ws, header_row: int = 1) -> None:
        """
        Bold filled header, thin borders and column widths fitted to content.
        """
        header_font = Font(bold=True, size=12, color="FFFFFF")
        header_fill = PatternFill(start_color="1976D2", end_color="1976D2", fill_type="solid")
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        center_alignment = Alignment(horizontal='center', vertical='center')

        for cell in ws[header_row]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = center_alignment

        for row in ws.iter_rows(min_row=header_row, max_row=ws.max_row):
            for cell in row:
                cell.border = border

        # Auto-adjust column widths
        for col_idx in range(1, ws.max_column + 1):
            max_length = 0
            column_letter = get_column_letter(col_idx)
            for row_idx in range(1, ws.max_row + 1):
                cell = ws.cell(row=row_idx, column=col_idx)
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))
            ws.column_dimensions[column_letter].width = min(max_length + 2, 50)  # Cap at 50 characters

    def students_frame(self, students: List[Dict]) -> pd.DataFrame:
        """Roster as a DataFrame with display column names, in list order."""
        df = pd.DataFrame(students, columns=list(ROSTER_COLUMNS))
        df = df.fillna('')
        return df.rename(columns=ROSTER_COLUMNS)

    def export_students(self, students: List[Dict], sort_by: Optional[str] = None) -> Optional[str]:
        """
        Export the student list to an Excel file.
        Rows keep the order they were fetched in.
        """
        try:
            filepath = self._timestamped_path('students_export')
            df = self.students_frame(students)
            df.to_excel(filepath, index=False, engine='openpyxl', sheet_name='Students')

            wb = openpyxl.load_workbook(filepath)
            ws = wb['Students']
            self._style_sheet(ws)
            if sort_by:
                ws.cell(row=ws.max_row + 2, column=1,
                        value=f"Sorted by {SORT_LABELS.get(sort_by, sort_by)}").font = Font(italic=True)
            wb.save(filepath)

            self.logger.info(f"Exported {len(students)} students to {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error exporting students: {str(e)}")
            return None

    def export_summary(self, summary: Dict) -> Optional[str]:
        """
        Export analytics to an Excel workbook with three sheets:
        Overview, Marks Distribution and Class Statistics.
        """
        try:
            filepath = self._timestamped_path('analytics_summary')

            overview = pd.DataFrame([
                {'Metric': 'Total Students', 'Value': summary['total']},
                {'Metric': 'Average Marks', 'Value': round(summary['average'], 2)},
                {'Metric': 'Top Scorer', 'Value': display_label(summary['highest'])},
                {'Metric': 'Lowest Scorer', 'Value': display_label(summary['lowest'])},
            ])
            distribution = pd.DataFrame(summary['histogram'], columns=['Marks Range', 'Students'])
            classes = pd.DataFrame([
                {
                    'Class': entry['student_class'],
                    'Students': entry['count'],
                    'Avg. Marks': round(entry['average'], 2),
                    'Topper': display_label(entry['highest']),
                    'Lowest Scorer': display_label(entry['lowest']),
                }
                for entry in summary['classes']
            ], columns=['Class', 'Students', 'Avg. Marks', 'Topper', 'Lowest Scorer'])

            with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
                overview.to_excel(writer, index=False, sheet_name='Overview')
                distribution.to_excel(writer, index=False, sheet_name='Marks Distribution')
                classes.to_excel(writer, index=False, sheet_name='Class Statistics')

            wb = openpyxl.load_workbook(filepath)
            for ws in wb.worksheets:
                self._style_sheet(ws)
            wb.save(filepath)

            self.logger.info(f"Exported analytics summary to {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error exporting analytics summary: {str(e)}")
            return None
