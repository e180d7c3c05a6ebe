from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from rei_engine.api.schemas import (
    AcreQuickRequest,
    AduCompareRequest,
    AnalyzeRequest,
    ApiResponse,
    CMHCRequest,
    CompareRequest,
    FinancingStrategiesRequest,
    LandTransferTaxRequest,
    MortgageQualificationRequest,
    ScrapeListingRequest,
    StressTestRequest,
)
from rei_engine.config import settings
from rei_engine.engine.deal_engine import DealEngine
from rei_engine.exceptions import ListingFetchError, ReiEngineError
from rei_engine.logging_config import setup_logger
from rei_engine.models.acre_scoring import quick_acre_assessment
from rei_engine.models.adu_analyzer import compare_adu_options
from rei_engine.models.development_analyzer import DevelopmentAnalyzer, DevelopmentInputs
from rei_engine.models.financing_optimizer import FinancingOptimizer
from rei_engine.models.mortgage_qualification import MortgageQualification, check_affordability
from rei_engine.services.cmhc_insurance import CMHCInsurance, validate_down_payment
from rei_engine.services.land_transfer_tax import LandTransferTax
from rei_engine.services.listing_parser import scrape_listing
from rei_engine.services.stress_test import StressTest


logger = setup_logger(__name__)

app = FastAPI(
    title=settings.api_title,
    description="HTTP API around the DealEngine and the Canadian rate calculators.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Single engine instance for all requests
engine = DealEngine()


def _http_error(e: Exception) -> HTTPException:
    """
    Domain errors are the caller's fault (422); a listing site that
    cannot be reached is an upstream failure (502); anything else is ours.
    """
    if isinstance(e, ListingFetchError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, (ReiEngineError, ValueError)):
        return HTTPException(status_code=422, detail=str(e))
    logger.exception(f"Unexpected error: {e}")
    return HTTPException(status_code=500, detail=str(e))


def _analysis_config(request: AnalyzeRequest) -> Dict[str, Any]:
    """
    Translate an AnalyzeRequest into the config dict DealEngine expects.
    """
    request_dict = request.model_dump()
    config: Dict[str, Any] = {"property": request_dict["property"]}

    # Optional nested configs
    for key in ("analyses", "acre", "employment_income", "projection", "airbnb", "adu", "development"):
        if request_dict.get(key) is not None:
            config[key] = request_dict[key]

    return config


@app.get("/health", tags=["system"])
def health_check() -> Dict[str, Any]:
    """
    Simple health check endpoint.
    """
    return {"status": "ok", "message": "Deal Engine API is running."}


# ---------------------------------------------------------
# Deal analysis
# ---------------------------------------------------------

@app.post("/analyze", response_model=ApiResponse, tags=["analysis"])
def analyze(payload: AnalyzeRequest) -> ApiResponse:
    """
    Full deal analysis plus any requested add-ons.
    """
    try:
        result = engine.run_full_analysis(_analysis_config(payload))

        # If the engine signals failure, translate to HTTP 400
        if not result.get("success", False):
            raise HTTPException(status_code=400, detail=result.get("error", "Analysis failed"))

        return ApiResponse(success=True, data=result)

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e)


@app.post("/compare", response_model=ApiResponse, tags=["analysis"])
def compare(payload: CompareRequest) -> ApiResponse:
    try:
        result = engine.compare_deals([_analysis_config(deal) for deal in payload.deals])
        if not result.get("success", False):
            raise HTTPException(status_code=400, detail=result.get("error", "Comparison failed"))
        return ApiResponse(success=True, data=result)

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e)


# ---------------------------------------------------------
# Calculators
# ---------------------------------------------------------

@app.post("/cmhc", response_model=ApiResponse, tags=["calculators"])
def cmhc(payload: CMHCRequest) -> ApiResponse:
    try:
        data = CMHCInsurance(payload.purchase_price, payload.down_payment_percent).calculate()
        data["down_payment_check"] = validate_down_payment(payload.purchase_price, payload.down_payment_percent)
        return ApiResponse(success=True, data=data)
    except Exception as e:
        raise _http_error(e)


@app.post("/land-transfer-tax", response_model=ApiResponse, tags=["calculators"])
def land_transfer_tax(payload: LandTransferTaxRequest) -> ApiResponse:
    try:
        data = LandTransferTax(
            purchase_price=payload.purchase_price,
            province=payload.province,
            city=payload.city,
            is_first_time_buyer=payload.is_first_time_buyer,
        ).calculate()
        return ApiResponse(success=True, data=data)
    except Exception as e:
        raise _http_error(e)


@app.post("/stress-test", response_model=ApiResponse, tags=["calculators"])
def stress_test(payload: StressTestRequest) -> ApiResponse:
    try:
        data = StressTest(
            mortgage_amount=payload.mortgage_amount,
            contract_rate=payload.contract_rate,
            amortization_years=payload.amortization_years,
            gross_annual_income=payload.gross_annual_income,
            monthly_property_tax=payload.monthly_property_tax,
        ).calculate()
        return ApiResponse(success=True, data=data)
    except Exception as e:
        raise _http_error(e)


@app.post("/mortgage-qualification", response_model=ApiResponse, tags=["calculators"])
def mortgage_qualification(payload: MortgageQualificationRequest) -> ApiResponse:
    try:
        data = MortgageQualification(
            gross_annual_income=payload.gross_annual_income,
            monthly_mortgage_payment=payload.monthly_mortgage_payment,
            annual_property_tax=payload.annual_property_tax,
            monthly_heating_cost=payload.monthly_heating_cost,
            monthly_condo_fees=payload.monthly_condo_fees,
            other_monthly_debts=payload.other_monthly_debts,
            credit_score=payload.credit_score,
        ).calculate()

        data["affordability"] = None
        if payload.purchase_price and payload.gross_annual_income > 0:
            data["affordability"] = check_affordability(
                purchase_price=payload.purchase_price,
                gross_annual_income=payload.gross_annual_income,
                other_monthly_debts=payload.other_monthly_debts,
                credit_score=payload.credit_score,
                down_payment_percent=payload.down_payment_percent,
            )

        return ApiResponse(success=True, data=data)
    except Exception as e:
        raise _http_error(e)


@app.post("/financing-strategies", response_model=ApiResponse, tags=["calculators"])
def financing_strategies(payload: FinancingStrategiesRequest) -> ApiResponse:
    try:
        optimizer = FinancingOptimizer(payload.property_price, payload.profile, payload.market_conditions)
        return ApiResponse(success=True, data=optimizer.recommend())
    except Exception as e:
        raise _http_error(e)


# ---------------------------------------------------------
# Screening
# ---------------------------------------------------------

@app.post("/acre/quick", response_model=ApiResponse, tags=["screening"])
def acre_quick(payload: AcreQuickRequest) -> ApiResponse:
    try:
        data = quick_acre_assessment(payload.purchase_price, payload.monthly_rent, payload.province, payload.city)
        return ApiResponse(success=True, data=data)
    except Exception as e:
        raise _http_error(e)


@app.post("/adu/compare", response_model=ApiResponse, tags=["screening"])
def adu_compare(payload: AduCompareRequest) -> ApiResponse:
    try:
        options = compare_adu_options(
            purchase_price=payload.purchase_price,
            current_value=payload.current_value or payload.purchase_price,
            province=payload.province,
            city=payload.city,
            existing_basement=payload.existing_basement,
            lot_size_sqft=payload.lot_size_sqft,
        )
        return ApiResponse(success=True, data=options)
    except Exception as e:
        raise _http_error(e)


@app.post("/scrape-listing", response_model=ApiResponse, tags=["screening"])
def scrape(payload: ScrapeListingRequest) -> ApiResponse:
    """
    Pre-fill PropertyInputs fields from a listing page.
    """
    try:
        return ApiResponse(success=True, data=scrape_listing(payload.url))
    except Exception as e:
        raise _http_error(e)


@app.post("/development", response_model=ApiResponse, tags=["screening"])
def development(payload: DevelopmentInputs) -> ApiResponse:
    """
    Stand-alone multi-family development analysis for a unit mix.
    """
    try:
        return ApiResponse(success=True, data=DevelopmentAnalyzer(payload).analyze())
    except Exception as e:
        raise _http_error(e)
