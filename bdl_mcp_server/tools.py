"""BDL tool catalogue."""

from typing import Any, Dict, List

from .bdl_client import LANGUAGES, METADATA_SECTIONS, SORT_ORDERS, BDLClient
from .registry import ToolRegistry, ToolSpec
from .schema import ArrayField, EnumField, FieldSpec, NumberField, ObjectField, StringField, UnionField, optional


def _integer(description: str, **bounds) -> NumberField:
    return NumberField(integer=True, description=description, **bounds)


def _string(description: str) -> StringField:
    return StringField(description=description)


def _one_or_many(description: str) -> FieldSpec:
    return optional(UnionField(
        options=(NumberField(integer=True), ArrayField(items=NumberField(integer=True))),
        description=description,
    ))


LANG = optional(EnumField(values=LANGUAGES, description="Response language (pl or en)"))
SORT = optional(EnumField(values=SORT_ORDERS, description="Sort order"))
PAGE = optional(_integer("Page number", exclusive_minimum=0))
PAGE_SIZE = optional(_integer("Number of results per page (max 100)", exclusive_minimum=0, maximum=100))


def _schema(**properties: FieldSpec) -> ObjectField:
    return ObjectField(properties=properties)


class BDLTools:
    """Tool executors: map validated tool arguments onto ``BDLClient`` calls."""

    def __init__(self, client: BDLClient):
        self.client = client

    async def get_aggregates(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_aggregates(sort=args.get("sort"), lang=args.get("lang"))

    async def get_aggregate(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_aggregate(args["id"], lang=args.get("lang"))

    async def get_attributes(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_attributes(sort=args.get("sort"), lang=args.get("lang"))

    async def get_attribute(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_attribute(args["id"], lang=args.get("lang"))

    async def get_levels(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_levels(sort=args.get("sort"), lang=args.get("lang"))

    async def get_level(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_level(args["id"], lang=args.get("lang"))

    async def get_measures(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_measures(sort=args.get("sort"), lang=args.get("lang"))

    async def get_measure(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_measure(args["id"], lang=args.get("lang"))

    async def get_subjects(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_subjects(parent_id=args.get("parentId"), lang=args.get("lang"))

    async def get_subject(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_subject(args["id"], lang=args.get("lang"))

    async def search_subjects(self, args: Dict[str, Any]) -> Any:
        return await self.client.search_subjects(args["name"], lang=args.get("lang"))

    async def get_units(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_units(
            level=args.get("level"),
            parent_id=args.get("parentId"),
            name=args.get("name"),
            sort=args.get("sort"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_unit(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_unit(args["id"], lang=args.get("lang"))

    async def search_units(self, args: Dict[str, Any]) -> Any:
        return await self.client.search_units(
            args["name"],
            level=args.get("level"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_localities(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_localities(
            parent_id=args.get("parentId"),
            name=args.get("name"),
            year=args.get("year"),
            sort=args.get("sort"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_locality(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_locality(args["id"], year=args.get("year"), lang=args.get("lang"))

    async def search_localities(self, args: Dict[str, Any]) -> Any:
        return await self.client.search_localities(
            args["name"],
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_variables(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_variables(
            subject_id=args.get("subjectId"),
            level=args.get("level"),
            year=args.get("year"),
            sort=args.get("sort"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_variable(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_variable(args["id"], lang=args.get("lang"))

    async def search_variables(self, args: Dict[str, Any]) -> Any:
        return await self.client.search_variables(
            args["name"],
            subject_id=args.get("subjectId"),
            level=args.get("level"),
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_data_by_variable(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_data_by_variable(
            args["varId"],
            unit_level=args.get("unitLevel"),
            unit_parent_id=args.get("unitParentId"),
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_data_by_unit(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_data_by_unit(
            args["unitId"],
            variable_id=args.get("varId"),
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_locality_data_by_variable(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_locality_data_by_variable(
            args["varId"],
            unit_parent_id=args.get("unitParentId"),
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_locality_data_by_unit(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_locality_data_by_unit(
            args["unitId"],
            variable_id=args.get("varId"),
            year=args.get("year"),
            page=args.get("page"),
            page_size=args.get("pageSize"),
            lang=args.get("lang")
        )

    async def get_years(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_years(lang=args.get("lang"))

    async def get_year(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_year(args["id"], lang=args.get("lang"))

    async def get_metadata(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_metadata(args["section"], lang=args.get("lang"))

    async def get_api_version(self, args: Dict[str, Any]) -> Any:
        return await self.client.get_version()


def build_tools(client: BDLClient) -> List[ToolSpec]:
    """Tool definitions, in the order ``tools/list`` reports them."""
    t = BDLTools(client)
    return [
        # Aggregates
        ToolSpec(
            name="get_aggregates",
            description="Get list of aggregation levels from BDL API. Aggregation levels define territorial groupings (e.g., voivodeship, county, commune).",
            input_schema=_schema(sort=SORT, lang=LANG),
            execute=t.get_aggregates,
        ),
        ToolSpec(
            name="get_aggregate",
            description="Get details of a specific aggregation level by ID.",
            input_schema=_schema(id=_integer("Aggregation level ID"), lang=LANG),
            execute=t.get_aggregate,
        ),
        # Attributes
        ToolSpec(
            name="get_attributes",
            description="Get list of data attributes/flags from BDL API.",
            input_schema=_schema(sort=SORT, lang=LANG),
            execute=t.get_attributes,
        ),
        ToolSpec(
            name="get_attribute",
            description="Get details of a specific attribute by ID.",
            input_schema=_schema(id=_integer("Attribute ID"), lang=LANG),
            execute=t.get_attribute,
        ),
        # Levels
        ToolSpec(
            name="get_levels",
            description="Get list of territorial levels (e.g., country, voivodeship, county, commune).",
            input_schema=_schema(sort=SORT, lang=LANG),
            execute=t.get_levels,
        ),
        ToolSpec(
            name="get_level",
            description="Get details of a specific territorial level by ID.",
            input_schema=_schema(id=_integer("Level ID"), lang=LANG),
            execute=t.get_level,
        ),
        # Measures
        ToolSpec(
            name="get_measures",
            description="Get list of measurement units used in BDL data.",
            input_schema=_schema(sort=SORT, lang=LANG),
            execute=t.get_measures,
        ),
        ToolSpec(
            name="get_measure",
            description="Get details of a specific measurement unit by ID.",
            input_schema=_schema(id=_integer("Measure unit ID"), lang=LANG),
            execute=t.get_measure,
        ),
        # Subjects
        ToolSpec(
            name="get_subjects",
            description="Get list of statistical subjects/categories. Subjects are organized hierarchically.",
            input_schema=_schema(
                parentId=optional(_string("Parent subject ID to get children")),
                lang=LANG,
            ),
            execute=t.get_subjects,
        ),
        ToolSpec(
            name="get_subject",
            description="Get details of a specific subject by ID.",
            input_schema=_schema(id=_string('Subject ID (e.g., "K1", "P2354")'), lang=LANG),
            execute=t.get_subject,
        ),
        ToolSpec(
            name="search_subjects",
            description="Search subjects by name.",
            input_schema=_schema(name=_string("Search term for subject name"), lang=LANG),
            execute=t.search_subjects,
        ),
        # Units
        ToolSpec(
            name="get_units",
            description="Get list of territorial units (administrative divisions of Poland).",
            input_schema=_schema(
                level=optional(_integer("Territorial level filter")),
                parentId=optional(_string("Parent unit ID to get children")),
                name=optional(_string("Name filter")),
                sort=SORT,
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_units,
        ),
        ToolSpec(
            name="get_unit",
            description="Get details of a specific territorial unit by ID.",
            input_schema=_schema(id=_string("Unit ID (TERYT code)"), lang=LANG),
            execute=t.get_unit,
        ),
        ToolSpec(
            name="search_units",
            description="Search territorial units by name.",
            input_schema=_schema(
                name=_string("Search term for unit name"),
                level=optional(_integer("Territorial level filter")),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.search_units,
        ),
        # Localities
        ToolSpec(
            name="get_localities",
            description="Get list of localities (cities, towns, villages).",
            input_schema=_schema(
                parentId=optional(_string("Parent unit ID")),
                name=optional(_string("Name filter")),
                year=optional(_integer("Year filter")),
                sort=SORT,
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_localities,
        ),
        ToolSpec(
            name="get_locality",
            description="Get details of a specific locality by ID.",
            input_schema=_schema(
                id=_string("Locality ID"),
                year=optional(_integer("Year")),
                lang=LANG,
            ),
            execute=t.get_locality,
        ),
        ToolSpec(
            name="search_localities",
            description="Search localities by name.",
            input_schema=_schema(
                name=_string("Search term for locality name"),
                year=optional(_integer("Year filter")),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.search_localities,
        ),
        # Variables
        ToolSpec(
            name="get_variables",
            description="Get list of statistical variables/indicators.",
            input_schema=_schema(
                subjectId=optional(_string("Filter by subject ID")),
                level=optional(_integer("Aggregation level filter")),
                year=optional(_integer("Year filter")),
                sort=SORT,
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_variables,
        ),
        ToolSpec(
            name="get_variable",
            description="Get details of a specific variable by ID, including available years.",
            input_schema=_schema(id=_integer("Variable ID"), lang=LANG),
            execute=t.get_variable,
        ),
        ToolSpec(
            name="search_variables",
            description="Search statistical variables by name.",
            input_schema=_schema(
                name=_string("Search term for variable name"),
                subjectId=optional(_string("Filter by subject ID")),
                level=optional(_integer("Aggregation level filter")),
                year=optional(_integer("Year filter")),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.search_variables,
        ),
        # Data
        ToolSpec(
            name="get_data_by_variable",
            description="Get statistical data for a specific variable across territorial units.",
            input_schema=_schema(
                varId=_integer("Variable ID"),
                unitLevel=optional(_integer("Territorial level for results")),
                unitParentId=optional(_string("Parent unit ID to filter results")),
                year=_one_or_many("Year or array of years"),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_data_by_variable,
        ),
        ToolSpec(
            name="get_data_by_unit",
            description="Get statistical data for a specific territorial unit.",
            input_schema=_schema(
                unitId=_string("Unit ID (TERYT code)"),
                varId=_one_or_many("Variable ID or array of variable IDs"),
                year=_one_or_many("Year or array of years"),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_data_by_unit,
        ),
        ToolSpec(
            name="get_locality_data_by_variable",
            description="Get locality-level statistical data for a specific variable.",
            input_schema=_schema(
                varId=_integer("Variable ID"),
                unitParentId=optional(_string("Parent unit ID to filter results")),
                year=optional(_integer("Year")),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_locality_data_by_variable,
        ),
        ToolSpec(
            name="get_locality_data_by_unit",
            description="Get locality-level statistical data for a specific unit.",
            input_schema=_schema(
                unitId=_string("Unit ID"),
                varId=_one_or_many("Variable ID or array of variable IDs"),
                year=optional(_integer("Year")),
                page=PAGE,
                pageSize=PAGE_SIZE,
                lang=LANG,
            ),
            execute=t.get_locality_data_by_unit,
        ),
        # Years
        ToolSpec(
            name="get_years",
            description="Get list of available years in BDL database.",
            input_schema=_schema(lang=LANG),
            execute=t.get_years,
        ),
        ToolSpec(
            name="get_year",
            description="Get details of a specific year.",
            input_schema=_schema(id=_integer("Year (e.g., 2023)"), lang=LANG),
            execute=t.get_year,
        ),
        # Metadata and version
        ToolSpec(
            name="get_metadata",
            description="Get descriptive metadata (title, description, copyright, disclaimer) of one BDL API section.",
            input_schema=_schema(
                section=EnumField(values=METADATA_SECTIONS, description="API section"),
                lang=LANG,
            ),
            execute=t.get_metadata,
        ),
        ToolSpec(
            name="get_api_version",
            description="Get BDL API version information.",
            input_schema=_schema(),
            execute=t.get_api_version,
        ),
    ]


def build_registry(client: BDLClient) -> ToolRegistry:
    return ToolRegistry(build_tools(client))
