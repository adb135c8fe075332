from typing import Optional

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..roi import (DEFAULT_INVESTMENT_EUR, Baseline, Current, Prices, compute_payback, compute_roi,
                   generate_roi_report)
from ..roi_pdf import render_roi_pdf

router = APIRouter(prefix="/api/roi", tags=["roi"])


class ROIRequest(BaseModel):
    baseline: Baseline = Baseline()
    current: Current
    prices: Prices = Prices()
    investment: float = Field(DEFAULT_INVESTMENT_EUR, gt=0)


class ROIReportRequest(ROIRequest):
    heatId: Optional[int] = None
    operator: Optional[str] = Field(None, max_length=200)


@router.post("")
def roi(body: ROIRequest):
    result = compute_roi(body.baseline, body.current, body.prices)
    return {
        **result.model_dump(by_alias=True),
        "payback": compute_payback(result, body.investment).model_dump(by_alias=True),
    }


@router.post("/report", response_class=PlainTextResponse)
def roi_report(body: ROIRequest):
    return PlainTextResponse(
        generate_roi_report(body.baseline, body.current, body.prices),
        media_type="text/markdown",
    )


@router.post("/report.pdf")
def roi_report_pdf(body: ROIReportRequest):
    pdf = render_roi_pdf(body.baseline, body.current, body.prices,
                         heat_id=body.heatId, operator=body.operator, investment=body.investment)
    filename = f"imelt-roi-{body.heatId}.pdf" if body.heatId is not None else "imelt-roi.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
