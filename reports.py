# reports.py
from flask import Blueprint, jsonify, request, send_file
from flask_login import login_required
from io import BytesIO
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from auth import current_workspace

reports = Blueprint("reports", __name__, url_prefix="")

RECENT_PER_CATEGORY = 2

def number(value):
    # records written by the browser app carry null where parsing gave NaN
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value

def price_per_bag(seed_type, inventory):
    # natural-key join: first inventory item with the same type wins
    item = next((i for i in inventory if i.get("type") == seed_type), None)
    return number(item.get("price")) if item else 0

def distribution_cost(distribution, inventory):
    return number(distribution.get("quantity")) * price_per_bag(distribution.get("seedType"), inventory)

def dashboard_summary(records):
    return {
        "totalFarmers": len(records.farmers),
        "totalBagsDistributed": sum(number(d.get("quantity")) for d in records.distributions),
        "totalBagsInInventory": sum(number(i.get("quantity")) for i in records.inventory),
        "pendingSettlementsCount": sum(1 for p in records.payments if p.get("status") == "Pending"),
        "inventoryValue": sum(number(i.get("quantity")) * number(i.get("price")) for i in records.inventory),
    }

def seed_type_breakdown(distributions):
    breakdown = {}
    for d in distributions:
        seed_type = d.get("seedType")
        breakdown[seed_type] = breakdown.get(seed_type, 0) + number(d.get("quantity"))
    return breakdown

def recent_activity(records, limit=5):
    """Last two records of each category in fixed category order, the final
    ``limit`` of those, newest-in-window first.

    Categories are not interleaved by time: a payment always sorts ahead of
    an older-looking farmer because payments come last in the scan.
    """
    activities = []
    for f in records.farmers[-RECENT_PER_CATEGORY:]:
        activities.append({"type": "Farmer Added",
                           "description": f"Added farmer {f.get('name')}",
                           "time": f.get("createdAt") or "recent"})
    for i in records.inventory[-RECENT_PER_CATEGORY:]:
        activities.append({"type": "Inventory Added",
                           "description": f"Added {i.get('type')} ({i.get('quantity')} {i.get('unit') or 'bags'})",
                           "time": i.get("createdAt") or "recent"})
    for d in records.distributions[-RECENT_PER_CATEGORY:]:
        activities.append({"type": "Seed Distributed",
                           "description": f"Distributed {d.get('quantity')} bags of {d.get('seedType')} to {d.get('farmer')}",
                           "time": d.get("date") or "recent"})
    for p in records.payments[-RECENT_PER_CATEGORY:]:
        activities.append({"type": "Payment Recorded",
                           "description": f"Payment of ₹{p.get('amount')} for {p.get('farmerName')}",
                           "time": p.get("paymentDate") or "recent"})
    if limit <= 0:
        return []
    return list(reversed(activities[-limit:]))

# distributions are not part of the global scan
GLOBAL_SEARCH_FIELDS = (
    ("farmers", ("name", "contact", "address")),
    ("inventory", ("type", "supplier")),
    ("logistics", ("tractorNumber", "driverName")),
    ("payments", ("farmerName", "accountNumber")),
)

def global_search(term, records):
    term = (term or "").strip().lower()
    if not term:
        return {"category": None, "results": []}
    results = []
    for category, fields in GLOBAL_SEARCH_FIELDS:
        for item in records.collection(category):
            if any(term in str(item.get(name) or "").lower() for name in fields):
                results.append({"type": category, "data": item})
    return {"category": results[0]["type"] if results else None, "results": results}

def distribution_statement_pdf(records, username):
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    margin = 15 * mm
    usable_width = width - 2 * margin

    y = height - margin
    c.setFillColorRGB(0.1, 0.4, 0.2)
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(width / 2, y, "SEED DISTRIBUTION STATEMENT")
    y -= 10 * mm
    c.setStrokeColorRGB(0.1, 0.4, 0.2)
    c.setLineWidth(1.5)
    c.line(margin, y, width - margin, y)
    y -= 8 * mm

    c.setFont("Helvetica-Bold", 12)
    c.setFillColorRGB(0, 0, 0)
    c.drawString(margin, y, f"Account: {username}")
    y -= 10 * mm

    # Seed type breakdown
    c.setFont("Helvetica-Bold", 11)
    c.drawString(margin, y, "Bags by seed type")
    y -= 12
    c.setFont("Helvetica", 9)
    for seed_type, qty in seed_type_breakdown(records.distributions).items():
        c.drawString(margin + 2, y, str(seed_type))
        c.drawRightString(margin + 0.4 * usable_width, y, str(qty))
        y -= 12
    y -= 6 * mm

    col_headers = ["Date", "Farmer", "Seed", "Bags", "Rate", "Cost", "Status"]
    col_widths = [0.14, 0.22, 0.18, 0.08, 0.12, 0.14, 0.12]
    col_positions = [margin]
    for w in col_widths:
        col_positions.append(col_positions[-1] + w * usable_width)

    def header(y):
        c.setFont("Helvetica-Bold", 9)
        c.setFillColorRGB(0.93, 0.97, 0.93)
        c.rect(margin, y - 3, usable_width, 10, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        for i, h in enumerate(col_headers):
            c.drawString(col_positions[i] + 2, y, h)
        c.setFont("Helvetica", 9)
        return y - 12

    y = header(y)
    total = 0
    for d in records.distributions:
        if y < margin + 40:
            c.showPage()
            y = header(height - margin)
        rate = price_per_bag(d.get("seedType"), records.inventory)
        cost = distribution_cost(d, records.inventory)
        values = [
            str(d.get("date", "")),
            str(d.get("farmer", "")),
            str(d.get("seedType", "")),
            str(number(d.get("quantity"))),
            f"{rate:.2f}",
            f"{cost:.2f}",
            str(d.get("status", "")),
        ]
        for i, v in enumerate(values):
            if 3 <= i <= 5:
                c.drawRightString(col_positions[i + 1] - 2, y, v)
            else:
                c.drawString(col_positions[i] + 2, y, v)
        y -= 12
        total += cost

    y -= 5
    c.line(margin, y, width - margin, y)
    y -= 12
    c.setFont("Helvetica-Bold", 11)
    c.setFillColorRGB(0.1, 0.4, 0.2)
    c.drawRightString(width - margin, y, f"Total: {total:.2f}")

    c.showPage()
    c.save()
    return buffer.getvalue()

@reports.route("/")
@login_required
def dashboard():
    records = current_workspace().records
    return jsonify({
        "summary": dashboard_summary(records),
        "recentActivity": recent_activity(records),
    })

@reports.route("/reports/breakdown")
@login_required
def breakdown():
    records = current_workspace().records
    rows = [{"seedType": k, "bags": v} for k, v in seed_type_breakdown(records.distributions).items()]
    return jsonify(rows)

@reports.route("/reports/search")
@login_required
def search():
    return jsonify(global_search(request.args.get("q", ""), current_workspace().records))

@reports.route("/reports/distributions.pdf")
@login_required
def distributions_pdf():
    workspace = current_workspace()
    pdf = distribution_statement_pdf(workspace.records, workspace.username)
    filename = f"distributions_{workspace.username}.pdf"
    return send_file(BytesIO(pdf), as_attachment=True, download_name=filename, mimetype="application/pdf")
