from typing import Annotated

from fastapi import Depends, Request

from vegscout.jobs import JobStore
from vegscout.services.batch_analysis import BatchAnalysisService
from vegscout.services.google_places import GooglePlacesService
from vegscout.services.menu_analysis import MenuAnalysisService


def get_menu_analysis_service(request: Request) -> MenuAnalysisService:
    return request.app.state.menu_analysis_service


def get_batch_analysis_service(request: Request) -> BatchAnalysisService:
    return request.app.state.batch_analysis_service


def get_google_places_service(request: Request) -> GooglePlacesService:
    return request.app.state.google_places_service


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


MenuAnalysisDep = Annotated[MenuAnalysisService, Depends(get_menu_analysis_service)]
BatchAnalysisDep = Annotated[BatchAnalysisService, Depends(get_batch_analysis_service)]
GooglePlacesDep = Annotated[GooglePlacesService, Depends(get_google_places_service)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
