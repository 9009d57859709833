"""
GymRate application package.

Layered architecture:

  app/models.py     : domain entities and request shapes (pure data).
  app/errors.py     : error taxonomy; each error knows its HTTP status.
  app/repositories/ : the ``Storage`` contract and its SQL / in-memory
                      backends.
  app/services/     : business logic: token issue/validation, rating
                      aggregation, signup and login.

``gymrate_api.create_app`` is the integration point: it builds the services
around one ``Storage`` instance and the ``Config`` passed in, and the Flask
route handlers only ever talk to those services.
"""
