#  This file contains the flask-restful "Resource" objects serving a `GenericResource`:
#  - RestAPI for collections and instances
#  - RelationshipAPI for relationships
#  and the `ResourceAPI` that creates and registers them.
#
# pylint: disable=redefined-builtin,invalid-name,logging-format-interpolation
#
from functools import partial, wraps
from http import HTTPStatus
from typing import Callable, Dict, Optional, Sequence

import werkzeug.exceptions
from flask import jsonify, make_response as flask_make_response, request, url_for
from flask_restful import Api, Resource as FRResource

import ratapi
from .api_init import RatAPI
from .auth import current_requester
from .document import Document, DocumentViewType, ErrorDocument, ResourceDocument
from .errors import GenericError, JsonapiError
from .events import deliver_all, pending_events
from .query import QueryTranslator
from .resource import GenericResource
from .resource_type import Relationship

HTTP_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE"]


def make_response(*args, **kwargs):
    """
    Customized flask make_response
    """
    response = flask_make_response(*args, **kwargs)
    if getattr(request, "is_jsonapi", False):
        # Only use "application/vnd.api+json" if the client sent this with the request
        response.headers["Content-Type"] = "application/vnd.api+json"
    return response


def document_response(document: Document, status_code: int = HTTPStatus.OK):
    return make_response(jsonify(document.to_dict()), status_code)


class Resource(FRResource):
    """
    Superclass for the exposed endpoints
    """

    # resource: the GenericResource serving the requests, set on the generated subclasses
    resource: Optional[GenericResource] = None

    @property
    def requester(self):
        return current_requester()

    @property
    def resource_type(self):
        return self.resource.resource_type


class RestAPI(Resource):
    """
    Collection and instance endpoints: /<type> and /<type>/<id>
    """

    # endpoint of the instance url, used for the Location header
    instance_endpoint = None

    def get(self, **kwargs):
        """
        http://jsonapi.org/format/#fetching
        Fetch an instance when an id is given, search the collection otherwise
        """
        id = kwargs.get("id")
        include = QueryTranslator.parse_include(request.args)
        if id is not None:
            entity = self.resource.find_by_id(id)
            document = ResourceDocument(self.resource_type, entity, self.requester, include=include)
        else:
            query = QueryTranslator(self.resource_type, self.requester).translate(request.args)
            rows, total = self.resource.search(query)
            document = ResourceDocument(self.resource_type, rows, self.requester, query=query, total=total, include=query.include)
        return document_response(document)

    def post(self, **kwargs):
        """
        http://jsonapi.org/format/#crud-creating
        Location Header identifying the location of the newly created resource
        """
        if kwargs.get("id") is not None:
            raise JsonapiError(f"POSTing to instance is not allowed {self}", status_code=HTTPStatus.METHOD_NOT_ALLOWED)
        entity = self.resource.create(self.requester, request.get_jsonapi_payload())
        document = ResourceDocument(self.resource_type, entity, self.requester)
        response = document_response(document, HTTPStatus.CREATED)
        if self.instance_endpoint:
            response.headers["Location"] = url_for(self.instance_endpoint, id=str(entity.id))
        return response

    def patch(self, **kwargs):
        """
        http://jsonapi.org/format/#crud-updating
        """
        entity = self.resource.update(self.requester, kwargs.get("id"), request.get_jsonapi_payload())
        return document_response(ResourceDocument(self.resource_type, entity, self.requester))

    put = patch

    def delete(self, **kwargs):
        """
        http://jsonapi.org/format/#crud-deleting
        The deleted resource identifier is returned as primary data
        """
        result = self.resource.delete(self.requester, kwargs.get("id"))
        return document_response(Document(data=result))


class RelationshipAPI(Resource):
    """
    Relationship endpoints: /<type>/<id>/relationships/<name>
    """

    rel_name: Optional[str] = None

    @property
    def relationship(self) -> Relationship:
        return self.resource_type.relationships[self.rel_name]

    def get(self, **kwargs):
        """
        http://jsonapi.org/format/#fetching-relationships
        """
        value = self.resource.relationship_view(self.requester, kwargs.get("id"), self.rel_name)
        target_type = self.resource.registry[self.relationship.target]
        document = ResourceDocument(target_type, value, self.requester, view=DocumentViewType.RELATIONSHIP, registry=self.resource.registry)
        return document_response(document)

    def _change(self, change, **kwargs):
        self.resource.relationship_change(self.requester, kwargs.get("id"), self.rel_name, change, request.get_jsonapi_payload())
        return make_response(jsonify({}), HTTPStatus.NO_CONTENT)

    def post(self, **kwargs):
        """
        http://jsonapi.org/format/#crud-updating-to-many-relationships
        add the members, members already present are kept once
        """
        return self._change("add", **kwargs)

    def patch(self, **kwargs):
        """
        http://jsonapi.org/format/#crud-updating-relationships
        replace the relationship members
        """
        return self._change("patch", **kwargs)

    def delete(self, **kwargs):
        """
        remove the members
        """
        return self._change("remove", **kwargs)


def http_method_decorator(fun: Callable) -> Callable:
    """Decorator for the supported jsonapi HTTP methods (get, post, patch, delete)
    - commit the database, then hand the change notifications to the response
    - convert all exceptions to a JSON:API error document

    :param fun:
    :return: wrapped fun
    """

    @wraps(fun)
    def method_wrapper(*args, **kwargs):
        """Wrap the method and perform error handling
        :return: result of the wrapped method
        """
        try:
            result = fun(*args, **kwargs)
            ratapi.DB.session.commit()
            events = pending_events()
            if events:
                # receivers run once the response has been sent
                result.call_on_close(partial(deliver_all, events))
            return result

        except JsonapiError as exc:
            ratapi.log.debug(f"{fun.__name__}: {exc}")
            error = exc

        except werkzeug.exceptions.HTTPException as exc:
            ratapi.log.error(exc.description)
            error = JsonapiError(exc.description, status_code=exc.code)

        except Exception as exc:
            ratapi.log.exception(exc)
            error = GenericError(str(exc))

        ratapi.DB.session.rollback()
        pending_events()
        return document_response(ErrorDocument(error.errors), error.status_code)

    return method_wrapper


def api_decorator(cls, decorators: Dict[str, Sequence[Callable]]):
    """Decorator for the API views:
        - add the route guards of each method (e.g. `authenticated`)
        - add generic exception handling

    The guards run inside the exception handling so their errors are rendered as error documents

    :param cls: The class that will be decorated (e.g. RestAPI, RelationshipAPI)
    :param decorators: {method name: [guard decorators]}, "put" uses the "patch" guards
    :return: decorated class
    """
    for method_name in ["patch", "post", "delete", "get", "put"]:
        method = getattr(cls, method_name, None)
        if not method:
            continue
        decorated_method = method
        for custom_decorator in decorators.get("patch" if method_name == "put" else method_name, []):
            decorated_method = custom_decorator(decorated_method)
        decorated_method = http_method_decorator(decorated_method)
        setattr(cls, method_name, decorated_method)
    return cls


class ResourceAPI(Api):
    """
    Flask-RESTful api exposing `GenericResource` instances
    """

    def __init__(self, app, prefix="", app_db=None, authenticator=None, **kwargs):
        """
        :param app: Flask app
        :param prefix: url prefix of all exposed routes
        :param app_db: Flask-SQLAlchemy instance
        :param authenticator: callable resolving a request to a `Requester`
        :param kwargs: configuration defaults, cfr. `RatAPI`
        """
        self.ratapi = RatAPI(app, app_db=app_db, authenticator=authenticator, **kwargs)
        super().__init__(app, prefix=prefix)

    def expose_resource(
        self,
        resource: GenericResource,
        decorators: Optional[Dict[str, Sequence[Callable]]] = None,
        relationship_decorators: Optional[Dict[str, Sequence[Callable]]] = None,
        methods: Sequence[str] = HTTP_METHODS,
        url_prefix: str = "",
    ) -> None:
        """This method creates the API url endpoints for `resource`

        :param resource: GenericResource to expose
        :param decorators: route guards of the collection and instance endpoints, per method name
        :param relationship_decorators: route guards of the relationship endpoints, per method name
        :param methods: HTTP methods to expose on the collection and instance urls
        :param url_prefix: url prefix
        """
        decorators = decorators or {}
        relationship_decorators = relationship_decorators if relationship_decorators is not None else decorators
        type_name = resource.type
        url = f"{url_prefix}/{type_name}"
        endpoint = f"{url_prefix.strip('/')}api.{type_name}"
        instance_endpoint = f"{endpoint}Id"
        properties = {"resource": resource, "instance_endpoint": instance_endpoint}

        collection_methods = [method for method in ["GET", "POST"] if method in methods]
        if collection_methods:
            api_class = api_decorator(type(f"{type_name}_API", (RestAPI,), properties), decorators)
            ratapi.log.info(f"Exposing {type_name} on {url}, endpoint: {endpoint}")
            self.add_resource(api_class, url, endpoint=endpoint, methods=collection_methods)

        instance_methods = [method for method in ["GET", "PATCH", "PUT", "DELETE"] if method in methods]
        if instance_methods:
            api_class = api_decorator(type(f"{type_name}_API_i", (RestAPI,), dict(properties)), decorators)
            ratapi.log.info(f"Exposing {type_name} instances on {url}/<id>, endpoint: {instance_endpoint}")
            self.add_resource(api_class, f"{url}/<string:id>", endpoint=instance_endpoint, methods=instance_methods)

        for rel_name, relationship in resource.resource_type.relationships.items():
            self.expose_relationship(resource, rel_name, relationship, url, endpoint, relationship_decorators)

    def expose_relationship(self, resource, rel_name, relationship, url, endpoint, decorators) -> None:
        """
        Expose /<type>/<id>/relationships/<rel_name>, only GET for relationships that can not be changed
        """
        methods = ["GET"]
        if relationship.writable:
            methods += ["POST", "PATCH", "DELETE"] if relationship.many else ["PATCH"]
        properties = {"resource": resource, "rel_name": rel_name}
        api_class = api_decorator(type(f"{resource.type}_{rel_name}_API", (RelationshipAPI,), properties), decorators)
        rel_url = f"{url}/<string:id>/relationships/{rel_name}"
        rel_endpoint = f"{endpoint}.{rel_name}"
        ratapi.log.info(f"Exposing relationship {rel_name} on {rel_url}, endpoint: {rel_endpoint}")
        self.add_resource(api_class, rel_url, endpoint=rel_endpoint, methods=methods)
