from io import BytesIO, StringIO
import csv

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.schemas.analytics import MetricReport, MetricShape, MetricType

CURRENCY_METRICS = {MetricType.total_revenue, MetricType.recurring_revenue}


def metric_title(metric_type: MetricType) -> str:
    return " ".join(word.capitalize() for word in metric_type.value.split("_"))


def format_metric_value(metric_type: MetricType, value: float | None) -> str:
    value = value or 0
    if metric_type == MetricType.conversion_rate:
        return f"{value}%"
    if metric_type in CURRENCY_METRICS:
        return f"${value:,.2f}"
    return f"{int(value):,}"


def history_csv(report: MetricReport) -> str:
    out = StringIO()
    writer = csv.writer(out)
    if report.shape == MetricShape.breakdown:
        writer.writerow(["label", "count", "percentage"])
        for entry in report.breakdown or []:
            writer.writerow([entry.label, entry.count, entry.percentage])
    else:
        writer.writerow(["date", report.metric_type.value])
        for point in report.history:
            writer.writerow([point.date, point.value])
    return out.getvalue()


def report_pdf(report: MetricReport) -> bytes:
    buffer = BytesIO()
    p = canvas.Canvas(buffer, pagesize=letter)
    y = 760
    p.setFont("Helvetica-Bold", 16)
    p.drawString(50, y, f"{metric_title(report.metric_type)} - {report.range.value.replace('_', ' ').title()}")
    y -= 24
    p.setFont("Helvetica", 10)
    window = report.window
    p.drawString(50, y, f"Window: {window.start or 'beginning'} to {window.end or 'now'} (end exclusive)")
    y -= 30
    p.setFont("Helvetica", 11)

    if report.shape == MetricShape.breakdown:
        lines = [f"Total: {report.total or 0}"]
        lines += [f"{e.label}: {e.count} ({e.percentage}%)" for e in report.breakdown or []]
    else:
        lines = [f"Current: {format_metric_value(report.metric_type, report.value)}"]
        if report.previous_value is not None:
            lines.append(f"Previous period: {format_metric_value(report.metric_type, report.previous_value)}")
            lines.append(f"Change: {report.change_pct:+.1f}%")
        lines += [f"{pt.date}: {format_metric_value(report.metric_type, pt.value)}" for pt in report.history]

    for line in lines:
        if y < 60:
            p.showPage()
            p.setFont("Helvetica", 11)
            y = 760
        p.drawString(50, y, line)
        y -= 18

    p.showPage()
    p.save()
    buffer.seek(0)
    return buffer.read()
