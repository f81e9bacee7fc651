from __future__ import annotations

import logging
import os
from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from smithlint import __version__
from smithlint.compliance import check_compliance, recommendations, score_result
from smithlint.config import load_config
from smithlint.errors import SmithError
from smithlint.model import (
	ComplianceResult,
	ComplianceScore,
	PatternRule,
	PlatformReport,
	ReadingPlan,
	ScanReport,
	SpmReport,
)
from smithlint.patterns import validate_path
from smithlint.router import generate_reading_plan
from smithlint.rules import load_rules
from smithlint.spm import analyze_package, check_platform_dependencies

log = logging.getLogger("smith.api")

app = FastAPI(title="Smith Checks", version=__version__)

config = load_config()


class PathRequest(BaseModel):
	root_path: str


class ComplianceRequest(BaseModel):
	root_path: str
	strict: bool = False


class RouteRequest(BaseModel):
	task: str
	docs_dir: str = "."


class PlatformRequest(BaseModel):
	root_path: str
	platform: str = "visionOS"


class ScoreResponse(BaseModel):
	score: ComplianceScore
	result: ComplianceResult
	headline: str
	actions: List[str]


def _bad_request(e: SmithError) -> HTTPException:
	log.info("Rejected request: %s", e)
	return HTTPException(status_code=400, detail=str(e))


@app.get("/health")
def health() -> dict:
	return {"status": "ok", "version": __version__}


@app.get("/rules", response_model=List[PatternRule])
def rules() -> List[PatternRule]:
	return load_rules(config)


@app.post("/validate", response_model=ScanReport)
def validate(req: PathRequest) -> ScanReport:
	try:
		return validate_path(req.root_path, rules=load_rules(config), skip_dirs=config.skip_dirs)
	except SmithError as e:
		raise _bad_request(e)


@app.post("/compliance", response_model=ComplianceResult)
def compliance(req: ComplianceRequest) -> ComplianceResult:
	try:
		return check_compliance(req.root_path, skip_dirs=config.compliance_skip_dirs)
	except SmithError as e:
		raise _bad_request(e)


@app.post("/compliance/score", response_model=ScoreResponse)
def compliance_score(req: ComplianceRequest) -> ScoreResponse:
	try:
		result = check_compliance(req.root_path, skip_dirs=config.compliance_skip_dirs)
	except SmithError as e:
		raise _bad_request(e)
	score = score_result(os.path.abspath(req.root_path), result)
	headline, actions = recommendations(score.score)
	return ScoreResponse(score=score, result=result, headline=headline, actions=actions)


@app.post("/route", response_model=ReadingPlan)
def route(req: RouteRequest) -> ReadingPlan:
	try:
		return generate_reading_plan(req.task, docs_dir=req.docs_dir)
	except SmithError as e:
		raise _bad_request(e)


@app.post("/spm", response_model=SpmReport)
def spm(req: PathRequest) -> SpmReport:
	try:
		return analyze_package(req.root_path, max_imports=config.max_imports, system_modules=config.system_modules)
	except SmithError as e:
		raise _bad_request(e)


@app.post("/spm/platforms", response_model=PlatformReport)
def spm_platforms(req: PlatformRequest) -> PlatformReport:
	try:
		return check_platform_dependencies(req.root_path, req.platform)
	except SmithError as e:
		raise _bad_request(e)
