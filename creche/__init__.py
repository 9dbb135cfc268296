"""
Creche - Daycare Management Backend

PostgreSQL-backed daycare administration with:
- Children, parents, daily agenda and attendance records
- Weekly menus with nutrient aggregation
- Tuition billing mirrored from the payment provider
- Enrollment contracts signed electronically
- Financial forecast and CRM pipeline board
"""

__version__ = "1.0.0"
__author__ = "Creche Contributors"
