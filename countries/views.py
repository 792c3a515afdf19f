
from django.conf import settings
from django.http import FileResponse
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from . import utils
from .cache import LIST_TAG, STATUS_KEY, CountryCache
from .exceptions import NotFound
from .repository import CountryRepository
from .serializers import CountryQuerySerializer, CountrySerializer
from .services import build_refresh_service


def get_repository():
    return CountryRepository()


def get_cache():
    return CountryCache(timeout=settings.COUNTRIES_QUERY_CACHE_TIMEOUT)


@api_view(['POST'])
def refresh_countries(request, service=None):
    """
    POST /countries/refresh
    Fetch countries and exchange rates, then replace the stored snapshot.
    503 when a source is unavailable, 500 when the write was rolled back.
    """
    service = service or build_refresh_service(repository=get_repository(), cache=get_cache())
    result = service.refresh()
    return Response(result.as_dict(), status=status.HTTP_200_OK)


@api_view(['GET'])
def list_countries(request, repository=None, cache=None):
    """
    GET /countries
    Filters:
      - region (exact), currency (exact, case-insensitive)
    Sorting:
      - ?sort=gdp_desc|gdp_asc|population_desc|population_asc, ties by name
    Default:
      - insertion order
    """
    query = CountryQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    filters = {
        "region": query.validated_data.get("region"),
        "currency": query.validated_data.get("currency"),
        "sort": query.validated_data.get("sort"),
    }

    repository = repository or get_repository()
    cache = cache or get_cache()

    key = cache.list_key(**filters)
    data = cache.get(key)
    if data is None:
        data = CountrySerializer(repository.list(**filters), many=True).data
        cache.set(key, data)
    return Response(data)


@api_view(['GET', 'DELETE'])
def country_detail(request, name, repository=None, cache=None):
    """
    GET /countries/:name    -> record or 404
    DELETE /countries/:name -> 200 {message} or 404
    Any casing/spacing/punctuation variant of the name matches.
    """
    repository = repository or get_repository()

    if request.method == 'GET':
        country = repository.find_by_name(name)
        return Response(CountrySerializer(country).data)

    country = repository.delete_by_name(name)
    (cache or get_cache()).invalidate([STATUS_KEY, LIST_TAG])
    return Response(
        {"message": f"Country '{country.name}' deleted successfully"},
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def get_status(request, repository=None, cache=None):
    """
    GET /status -> { total_countries, last_refreshed_at }
    last_refreshed_at is the latest refresh timestamp across records (or null)
    """
    cache = cache or get_cache()
    data = cache.get(STATUS_KEY)
    if data is None:
        data = (repository or get_repository()).status()
        cache.set(STATUS_KEY, data)
    return Response(data)


@api_view(['GET'])
def get_summary_image(request):
    """
    GET /countries/image
    Serve the summary image written by the last refresh.
    """
    path = utils.get_summary_image_path()
    try:
        image = open(path, 'rb')
    except (FileNotFoundError, IsADirectoryError):
        raise NotFound("Summary image not found")
    return FileResponse(image, content_type='image/png')
