from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.colors import red, green, yellow, black


def risk_color(score: int):
    return red if score >= 70 else (yellow if score >= 30 else green)


def _line(c, y, step=16):
    """Baja el cursor y hace salto de página si hace falta."""
    if y < 80:
        c.showPage()
        c.setFont("Helvetica", 12)
        return A4[1] - 60
    return y - step


def build_pdf(result: dict, out_path: str):
    c = canvas.Canvas(out_path, pagesize=A4)
    w, h = A4

    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h-60, "EVM Wallet Risk Report")

    c.setFont("Helvetica", 12)
    y = h-90
    c.drawString(40, y, f"Wallet: {result.get('wallet', 'N/A')}"); y = _line(c, y, 15)
    c.drawString(40, y, f"Chain ID: {result.get('chain_id', 'N/A')}"); y = _line(c, y, 15)
    c.drawString(40, y, f"Request: {result.get('request_id', 'N/A')}"[:95]); y = _line(c, y, 15)
    if result.get("payment_tx_hash"):
        c.drawString(40, y, f"Payment tx: {result['payment_tx_hash']}"[:95]); y = _line(c, y, 15)
    c.drawString(40, y, f"Status: {result.get('status', 'N/A')}  ({result.get('timestamp', '')})"); y = _line(c, y, 15)

    score = int(result.get("risk_score", 0))
    c.drawString(40, y, f"Risk Score: {score} / 100"); y = _line(c, y, 15)
    bar_h = 15
    bar_y = y - bar_h - 1
    c.setFillColor(risk_color(score))
    c.rect(40, y-14, width=max(0, min(100, score)) * 4, height=bar_h, fill=1, stroke=0)
    c.setFillColor(black); y = _line(c, y, 15)
    c.drawString(40, y, f"Risk Level: {result.get('risk_level', 'N/A')}")

    y = bar_y - 12
    y = _line(c, y, 30)

    if result.get("error"):
        c.setFont("Helvetica-Bold", 12); c.drawString(40, y, "Error"); y = _line(c, y, 20)
        c.setFont("Helvetica", 11)
        c.drawString(40, y, str(result["error"])[:110]); y = _line(c, y, 24)

    c.setFont("Helvetica-Bold", 12); c.drawString(40, y, "Summary"); y = _line(c, y, 20)
    c.setFont("Helvetica", 12)
    c.drawString(40, y, (result.get("summary") or "")[:100])
    y = _line(c, y, 24)

    td = result.get("transaction_data") or {}
    br = td.get("block_range") or {}
    c.drawString(40, y, f"Transactions observed: {result.get('transaction_count', 0)}  analyzed: {result.get('analyzed_count', 0)}"); y = _line(c, y, 15)
    c.drawString(40, y, f"Sent logs: {td.get('sent_count', 0)}  Received transfers: {td.get('received_count', 0)}"); y = _line(c, y, 15)
    if br:
        c.drawString(40, y, f"Blocks: {br.get('from_block')} - {br.get('to_block')}"); y = _line(c, y, 24)

    c.setFont("Helvetica-Bold", 12); c.drawString(40, y, "Flags:"); y = _line(c, y, 18)
    c.setFont("Helvetica", 11)
    for f in result.get("flags", []):
        line = f"- [{f.get('type')}] +{f.get('risk')} ({f.get('severity')}): {f.get('description')}"
        c.drawString(50, y, line[:110]); y = _line(c, y, 14)
        tx = (f.get("evidence") or {}).get("tx_hash")
        if tx:
            c.drawString(60, y, f"tx {tx}"[:105]); y = _line(c, y, 16)

    c.showPage()
    c.save()
