import abc
from typing import Optional, Set

from expediente.domain import model


class AbstractExpedienteRepository(abc.ABC):
    def __init__(self):
        self.seen = set()  # type: Set[model.Expediente]

    def add(self, expediente: model.Expediente) -> str:
        self._add(expediente)
        self.seen.add(expediente)
        return expediente.id_

    def get(self, expediente_id) -> Optional[model.Expediente]:
        expediente = self._get(expediente_id)
        if expediente:
            self.seen.add(expediente)
        return expediente

    @abc.abstractmethod
    def _add(self, expediente: model.Expediente):
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, expediente_id) -> Optional[model.Expediente]:
        raise NotImplementedError


class AbstractTokenRepository(abc.ABC):
    def __init__(self):
        self.seen = set()  # type: Set[model.AccessToken]

    def add(self, access_token: model.AccessToken) -> str:
        self._add(access_token)
        self.seen.add(access_token)
        return access_token.token

    def get(self, token: str) -> Optional[model.AccessToken]:
        access_token = self._get(token)
        if access_token:
            self.seen.add(access_token)
        return access_token

    @abc.abstractmethod
    def _add(self, access_token: model.AccessToken):
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, token: str) -> Optional[model.AccessToken]:
        raise NotImplementedError


class SqlAlchemyExpedienteRepository(AbstractExpedienteRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _add(self, expediente):
        self.session.add(expediente)

    def _get(self, expediente_id):
        return self.session.query(model.Expediente).filter_by(id_=expediente_id).first()


class SqlAlchemyTokenRepository(AbstractTokenRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _add(self, access_token):
        self.session.add(access_token)

    def _get(self, token):
        return self.session.query(model.AccessToken).filter_by(token=token).first()
